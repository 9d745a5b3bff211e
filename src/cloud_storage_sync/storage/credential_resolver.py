"""GCS Credential Resolver - resolves credentials from multiple sources.

Provides a unified way to load Google Cloud Storage credentials from:
1. Environment variables (GOOGLE_APPLICATION_CREDENTIALS)
2. .env file (for local development convenience)

When neither yields a key file, callers fall back to application default
credentials, which the google-auth library resolves on its own.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple


class GCSCredentialResolver:
    """Resolve GCS credentials from multiple sources.

    Priority order:
    1. GOOGLE_APPLICATION_CREDENTIALS environment variable
    2. .env file with GCS_CREDENTIALS_PATH
    """

    DOTENV_PATHS: Sequence[Path] = (Path(".env"),)

    @classmethod
    def resolve(
        cls,
        logger: Optional[logging.Logger] = None,
        environ: Optional[Dict[str, str]] = None,
    ) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
        """
        Try each credential source in priority order.

        Args:
            logger: Optional logger instance
            environ: Environment mapping (defaults to os.environ)

        Returns:
            Tuple of (credentials_dict, bucket_name); either may be None
        """
        log = logger or logging.getLogger(__name__)
        env = os.environ if environ is None else environ

        credentials, bucket_name = cls._from_env_var(log, env)
        if credentials:
            log.info("Resolved GCS credentials from environment variables")
            return credentials, bucket_name

        credentials, dotenv_bucket = cls._from_dotenv(log)
        if credentials:
            log.info("Resolved GCS credentials from .env file")
            return credentials, bucket_name or dotenv_bucket

        log.debug("No GCS key file found; relying on application default credentials")
        return None, bucket_name or dotenv_bucket

    @staticmethod
    def _load_key_file(path: Path, logger: logging.Logger) -> Optional[Dict[str, Any]]:
        if not path.exists():
            logger.warning(f"Credentials file not found: {path}")
            return None
        try:
            with open(path, 'r') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to read credentials file {path}: {e}")
            return None

    @classmethod
    def _from_env_var(
        cls,
        logger: logging.Logger,
        env: Dict[str, str],
    ) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
        """Try to load credentials from environment variables."""
        bucket_name = env.get('GCS_BUCKET_NAME') or None
        credentials_path = env.get('GOOGLE_APPLICATION_CREDENTIALS')
        if not credentials_path:
            return None, bucket_name
        return cls._load_key_file(Path(credentials_path), logger), bucket_name

    @staticmethod
    def parse_dotenv(dotenv_path: Path) -> Dict[str, str]:
        """Parse KEY=VALUE lines, ignoring blanks and comments."""
        env_vars = {}
        with open(dotenv_path, 'r') as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith('#'):
                    continue
                if '=' in line:
                    key, value = line.split('=', 1)
                    # Remove quotes if present
                    value = value.strip().strip('"').strip("'")
                    env_vars[key.strip()] = value
        return env_vars

    @classmethod
    def _from_dotenv(
        cls,
        logger: logging.Logger
    ) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
        """Try to load credentials from .env file."""
        dotenv_path = next((p for p in cls.DOTENV_PATHS if p.exists()), None)
        if not dotenv_path:
            return None, None

        try:
            env_vars = cls.parse_dotenv(dotenv_path)
        except OSError as e:
            logger.warning(f"Failed to read {dotenv_path}: {e}")
            return None, None

        credentials_path = env_vars.get('GCS_CREDENTIALS_PATH') or env_vars.get('GOOGLE_APPLICATION_CREDENTIALS')
        bucket_name = env_vars.get('GCS_BUCKET_NAME') or None
        if not credentials_path:
            return None, bucket_name

        # Relative paths are relative to the .env file
        creds_path = Path(credentials_path)
        if not creds_path.is_absolute():
            creds_path = dotenv_path.parent / creds_path

        return cls._load_key_file(creds_path, logger), bucket_name
