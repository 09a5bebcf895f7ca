"""
Configuration management for storage, session tokens and application settings.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass
class OpenSearchConfig:
    """Configuration for the OpenSearch document store."""
    endpoint: str
    port: int
    region: str
    index_prefix: str
    use_aws_auth: bool
    username: Optional[str]
    password: Optional[str]
    use_ssl: bool
    verify_certs: bool
    index_sync_delay: float
    refresh_on_write: bool


@dataclass
class AuthConfig:
    """Configuration for credentials and session tokens."""
    token_mode: str  # unsigned | signed
    token_secret: Optional[str]
    session_ttl_ms: int
    bcrypt_rounds: int
    min_password_length: int


@dataclass
class MCPConfig:
    """Configuration for MCP interface."""
    transport: str
    host: str
    port: int


@dataclass
class AppConfig:
    """Main application configuration."""
    environment: str
    log_level: str
    opensearch: OpenSearchConfig
    auth: AuthConfig
    mcp: MCPConfig


def load_config() -> AppConfig:
    """Load configuration from environment variables with defaults."""
    environment = os.getenv('ENVIRONMENT', 'development')

    # Document store configuration
    opensearch_config = OpenSearchConfig(endpoint=os.getenv('OPENSEARCH_ENDPOINT', 'localhost'),
                                         port=int(os.getenv('OPENSEARCH_PORT', '9200')),
                                         region=os.getenv('OPENSEARCH_AWS_REGION', 'us-east-1'),
                                         index_prefix=os.getenv('OPENSEARCH_INDEX_PREFIX', 'memory_journal'),
                                         use_aws_auth=_env_bool('OPENSEARCH_USE_AWS_AUTH', 'false'),
                                         username=os.getenv('OPENSEARCH_USERNAME') or None,
                                         password=os.getenv('OPENSEARCH_PASSWORD') or None,
                                         use_ssl=_env_bool('OPENSEARCH_USE_SSL', 'false'),
                                         verify_certs=_env_bool('OPENSEARCH_VERIFY_CERTS', 'true'),
                                         index_sync_delay=float(os.getenv('OPENSEARCH_INDEX_SYNC_DELAY', '0')),
                                         refresh_on_write=_env_bool('OPENSEARCH_REFRESH_ON_WRITE', 'true'))

    # Session token and password hashing configuration
    auth_config = AuthConfig(token_mode=os.getenv('SESSION_TOKEN_MODE', 'unsigned').strip().lower(),
                             token_secret=os.getenv('SESSION_TOKEN_SECRET') or None,
                             session_ttl_ms=int(os.getenv('SESSION_TTL_MS', str(7 * 24 * 60 * 60 * 1000))),
                             bcrypt_rounds=int(os.getenv('BCRYPT_ROUNDS', '12')),
                             min_password_length=int(os.getenv('MIN_PASSWORD_LENGTH', '6')))

    # MCP configuration
    mcp_config = MCPConfig(transport=os.getenv('MCP_TRANSPORT', 'sse'),
                           host=os.getenv('MCP_HOST', '127.0.0.1'),
                           port=int(os.getenv('MCP_PORT', '8000')))

    return AppConfig(environment=environment,
                     log_level=os.getenv('LOG_LEVEL', 'INFO'),
                     opensearch=opensearch_config,
                     auth=auth_config,
                     mcp=mcp_config)


# Global configuration instance
config = load_config()
