"""
Database settings for the reconciliation API and CLI.

Values come from the process environment, then from the .env file at the
project root (the environment wins). DATABASE_URL, the connection string
the dashboard's hosted Postgres hands out, takes precedence over the
discrete DB_* variables.

RECON_STATEMENT_TIMEOUT_MS caps every statement on connections opened by
get_connection(). Write batches commit on their own, so a timeout only
loses the batch in flight.
"""
import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent
APPLICATION_NAME = 'supply-reconciliation'


def load_env_file(path=None) -> int:
    """Copy KEY=VALUE lines into os.environ without overriding. Returns keys set."""
    path = Path(path) if path else PROJECT_ROOT / '.env'
    if not path.exists():
        return 0

    loaded = 0
    with open(path, encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith('#') or '=' not in line:
                continue
            if line.startswith('export '):
                line = line[len('export '):]
            key, _, value = line.partition('=')
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value
                loaded += 1
    return loaded


def db_settings(env=None) -> dict:
    """psycopg2.connect() keyword arguments."""
    env = os.environ if env is None else env
    url = env.get('DATABASE_URL')
    if url:
        return {'dsn': url, 'application_name': APPLICATION_NAME}
    return {
        'host': env.get('DB_HOST', 'localhost'),
        'port': int(env.get('DB_PORT', '5432')),
        'database': env.get('DB_NAME', 'hospital_supplies'),
        'user': env.get('DB_USER', 'postgres'),
        'password': env.get('DB_PASSWORD', ''),
        'application_name': APPLICATION_NAME,
    }


def statement_timeout_ms(env=None):
    """Positive integer from RECON_STATEMENT_TIMEOUT_MS, else None."""
    env = os.environ if env is None else env
    raw = env.get('RECON_STATEMENT_TIMEOUT_MS')
    try:
        value = int(raw) if raw else 0
    except ValueError:
        return None
    return value if value > 0 else None


load_env_file()
DB_CONFIG = db_settings()


def get_connection(cursor_factory=None):
    """Open a connection with the shared settings and statement timeout."""
    import psycopg2
    kwargs = dict(DB_CONFIG)
    if cursor_factory:
        kwargs['cursor_factory'] = cursor_factory
    timeout = statement_timeout_ms()
    if timeout:
        kwargs['options'] = f'-c statement_timeout={timeout}'
    return psycopg2.connect(**kwargs)
