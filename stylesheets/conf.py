"""
Access to ``settings.CSS_OPTIMIZER`` merged over app defaults.
"""
import logging
import re

from django.conf import settings

from .engine import CriticalWindow, MatchPolicy, compile_safelist
from .engine.policy import DEFAULT_CLASS_WINDOW, DEFAULT_CRITICAL_DENYLIST, DEFAULT_TAG_WINDOW
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULTS = {
    'CONTENT_PATTERNS': ['**/*.html', '**/*.js', '**/*.jsx', '**/*.ts', '**/*.tsx', '**/*.vue'],
    'IGNORE_DIRS': ['node_modules', '.git', 'dist', 'build'],
    'SAFELIST': [],
    'PRESERVE_VARIABLES': True,
    'PRESERVE_PSEUDO': True,
    'CRITICAL_TAG_WINDOW': DEFAULT_TAG_WINDOW,
    'CRITICAL_CLASS_WINDOW': DEFAULT_CLASS_WINDOW,
    'CRITICAL_DENYLIST': sorted(DEFAULT_CRITICAL_DENYLIST),
    'CRITICAL_SELECTORS': [],
    'CRITICAL_CSS_DIR': '',
    'UTILITY_FRAMEWORK': 'auto',
    'CONCURRENCY': 4,
    'FILE_TIMEOUT': None,
}

LIST_KEYS = ('CONTENT_PATTERNS', 'IGNORE_DIRS', 'SAFELIST', 'CRITICAL_DENYLIST', 'CRITICAL_SELECTORS')
UTILITY_CHOICES = {'auto': 'auto', 'on': True, 'off': False, True: True, False: False}


def get_config(**overrides):
    """
    Return the effective configuration dict.

    Keyword overrides (typically command options) win over settings; a value
    of ``None`` means "not given" and leaves the setting in place.
    """
    user_config = getattr(settings, 'CSS_OPTIMIZER', {}) or {}
    if not isinstance(user_config, dict):
        raise ConfigurationError('CSS_OPTIMIZER must be a dict')
    unknown = set(user_config) - set(DEFAULTS)
    if unknown:
        logger.warning("Ignoring unknown CSS_OPTIMIZER keys: %s", ", ".join(sorted(unknown)))

    config = dict(DEFAULTS)
    config.update({key: value for key, value in user_config.items() if key in DEFAULTS})
    config.update({key: value for key, value in overrides.items() if value is not None})
    return _validate(config)


def _validate(config):
    for key in LIST_KEYS:
        value = config[key]
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple, set, frozenset)):
            raise ConfigurationError(f'CSS_OPTIMIZER[{key!r}] must be a list, got {value!r}')
        config[key] = list(value)

    for key, minimum in (('CRITICAL_TAG_WINDOW', 0), ('CRITICAL_CLASS_WINDOW', 0), ('CONCURRENCY', 1)):
        try:
            value = int(config[key])
        except (TypeError, ValueError):
            raise ConfigurationError(f'CSS_OPTIMIZER[{key!r}] must be an integer, got {config[key]!r}') from None
        if value < minimum:
            raise ConfigurationError(f'CSS_OPTIMIZER[{key!r}] must be >= {minimum}, got {value}')
        config[key] = value

    timeout = config['FILE_TIMEOUT']
    if timeout is not None:
        try:
            timeout = float(timeout)
        except (TypeError, ValueError):
            raise ConfigurationError(f'CSS_OPTIMIZER[FILE_TIMEOUT] must be a number, got {timeout!r}') from None
        config['FILE_TIMEOUT'] = timeout if timeout > 0 else None

    utility = config['UTILITY_FRAMEWORK']
    if isinstance(utility, str):
        utility = utility.strip().lower()
    if utility not in UTILITY_CHOICES:
        raise ConfigurationError(
            f"CSS_OPTIMIZER['UTILITY_FRAMEWORK'] must be 'auto', 'on' or 'off', got {config['UTILITY_FRAMEWORK']!r}"
        )
    config['UTILITY_FRAMEWORK'] = UTILITY_CHOICES[utility]

    config['PRESERVE_VARIABLES'] = bool(config['PRESERVE_VARIABLES'])
    config['PRESERVE_PSEUDO'] = bool(config['PRESERVE_PSEUDO'])
    return config


def build_policy(config):
    """MatchPolicy for an effective config; bad safelist regexes are configuration errors."""
    try:
        safelist = compile_safelist(config['SAFELIST'])
    except re.error as exc:
        raise ConfigurationError(f'Invalid safelist pattern: {exc}') from exc
    return MatchPolicy(
        safelist=safelist,
        preserve_variables=config['PRESERVE_VARIABLES'],
        preserve_pseudo=config['PRESERVE_PSEUDO'],
        critical_window=CriticalWindow(
            tag_n=config['CRITICAL_TAG_WINDOW'],
            class_n=config['CRITICAL_CLASS_WINDOW'],
        ),
        critical_denylist=frozenset(config['CRITICAL_DENYLIST']),
    )


def get_policy(**overrides):
    return build_policy(get_config(**overrides))
