"""
Конфигурация сервиса.

Собирается один раз при старте (в settings.py) и дальше передается только
по ссылке. Источники по возрастанию приоритета: значения по умолчанию,
YAML-файл из CONFIG_PATH (если задан и существует), переменные окружения.
"""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_MAX_REVIEWERS = 2
MAX_REVIEWERS_LIMIT = 2
DEFAULT_SERVER_PORT = 8081
SQLITE_LOCK_TIMEOUT = 20

# (секция, ключ) в YAML -> переменная окружения с тем же смыслом
YAML_KEYS = {
    ('postgres', 'host'): 'DB_HOST',
    ('postgres', 'port'): 'DB_PORT',
    ('postgres', 'user'): 'DB_USER',
    ('postgres', 'password'): 'DB_PASSWORD',
    ('postgres', 'database'): 'DB_NAME',
    ('sqlite', 'path'): 'SQLITE_PATH',
    ('server', 'port'): 'SERVER_PORT',
    ('server', 'max_reviewers'): 'MAX_REVIEWERS',
    ('server', 'log_level'): 'LOG_LEVEL',
}


@dataclass(frozen=True)
class DatabaseConfig:
    engine: str = 'sqlite'
    host: str = 'localhost'
    port: int = 5432
    user: str = 'postgres'
    password: str = 'postgres'
    name: str = 'reviewer_appointment'
    sqlite_path: str = 'db.sqlite3'

    def as_django(self) -> dict:
        """Словарь для settings.DATABASES['default']"""
        if self.engine == 'postgres':
            return {
                'ENGINE': 'django.db.backends.postgresql',
                'HOST': self.host,
                'PORT': self.port,
                'USER': self.user,
                'PASSWORD': self.password,
                'NAME': self.name,
            }
        # BEGIN IMMEDIATE: пишущая транзакция берет блокировку на старте,
        # конкурент ждет commit и видит уже зафиксированное состояние
        return {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': self.sqlite_path,
            'OPTIONS': {
                'transaction_mode': 'IMMEDIATE',
                'timeout': SQLITE_LOCK_TIMEOUT,
            },
            # Файловая тестовая БД: у in-memory с shared cache блокировки не ждут
            'TEST': {
                'NAME': f'{self.sqlite_path}.test',
            },
        }


@dataclass(frozen=True)
class ServiceConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    server_port: int = DEFAULT_SERVER_PORT
    max_reviewers: int = DEFAULT_MAX_REVIEWERS
    debug: bool = False
    secret_key: str = 'insecure-dev-key'
    log_level: str = 'INFO'
    allowed_hosts: tuple = ('*',)


def _get_int(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = environ.get(key)
    if raw in (None, ''):
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("invalid %s value: %r, using %s", key, raw, default)
        return default


def _get_bool(environ: Mapping[str, str], key: str, default: bool) -> bool:
    raw = environ.get(key)
    if raw in (None, ''):
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


def read_config_file(config_path: Optional[str]) -> dict:
    """
    Читает YAML-файл конфигурации и переводит его в имена переменных окружения

    Отсутствующий путь или файл - не ошибка: возвращается пустой словарь.
    Нечитаемый файл пропускается с предупреждением.
    """
    if not config_path:
        return {}

    path = Path(config_path)
    if not path.exists():
        logger.warning("config file %s not found, using environment only", config_path)
        return {}

    try:
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("failed to read config file %s: %s", config_path, e)
        return {}

    if not isinstance(file_config, dict):
        logger.warning("config file %s must contain a mapping", config_path)
        return {}

    values = {}
    for (section, key), env_name in YAML_KEYS.items():
        section_values = file_config.get(section) or {}
        if isinstance(section_values, dict) and section_values.get(key) is not None:
            values[env_name] = str(section_values[key])
    return values


def load_config(environ: Optional[Mapping[str, str]] = None) -> ServiceConfig:
    """
    Читает конфигурацию из YAML-файла и окружения

    Args:
        environ: Источник переменных (по умолчанию os.environ)

    Returns:
        ServiceConfig: Неизменяемая конфигурация
    """
    if environ is None:
        environ = os.environ

    # Непустые переменные окружения перекрывают значения из файла
    merged = read_config_file(environ.get('CONFIG_PATH'))
    merged.update({key: value for key, value in environ.items() if value != ''})

    engine = merged.get('DB_ENGINE', 'sqlite').strip().lower()
    if engine not in ('sqlite', 'postgres'):
        logger.warning("unknown DB_ENGINE %r, falling back to sqlite", engine)
        engine = 'sqlite'

    database = DatabaseConfig(
        engine=engine,
        host=merged.get('DB_HOST', 'localhost'),
        port=_get_int(merged, 'DB_PORT', 5432),
        user=merged.get('DB_USER', 'postgres'),
        password=merged.get('DB_PASSWORD', 'postgres'),
        name=merged.get('DB_NAME', 'reviewer_appointment'),
        sqlite_path=merged.get('SQLITE_PATH', 'db.sqlite3'),
    )

    max_reviewers = _get_int(merged, 'MAX_REVIEWERS', DEFAULT_MAX_REVIEWERS)
    if max_reviewers < 0:
        logger.warning("negative MAX_REVIEWERS, using %s", DEFAULT_MAX_REVIEWERS)
        max_reviewers = DEFAULT_MAX_REVIEWERS
    elif max_reviewers > MAX_REVIEWERS_LIMIT:
        logger.warning("MAX_REVIEWERS %s above limit, using %s", max_reviewers, MAX_REVIEWERS_LIMIT)
        max_reviewers = MAX_REVIEWERS_LIMIT

    hosts = merged.get('ALLOWED_HOSTS', '*')

    return ServiceConfig(
        database=database,
        server_port=_get_int(merged, 'SERVER_PORT', DEFAULT_SERVER_PORT),
        max_reviewers=max_reviewers,
        debug=_get_bool(merged, 'DEBUG', False),
        secret_key=merged.get('SECRET_KEY', 'insecure-dev-key'),
        log_level=merged.get('LOG_LEVEL', 'INFO').upper(),
        allowed_hosts=tuple(h.strip() for h in hosts.split(',') if h.strip()),
    )
