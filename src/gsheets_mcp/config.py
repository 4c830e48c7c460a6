"""
Server settings read from the environment and the command line.
"""

import logging
import os
import sys
from dataclasses import dataclass
from typing import FrozenSet, List, Mapping, Optional

SCOPES = ['https://www.googleapis.com/auth/spreadsheets', 'https://www.googleapis.com/auth/drive']


@dataclass(frozen=True)
class Settings:
    """Configuration for one server process"""
    credentials_config: Optional[str] = None
    token_path: str = 'token.json'
    credentials_path: str = 'credentials.json'
    service_account_path: str = 'service_account.json'
    drive_folder_id: Optional[str] = None
    enabled_tools: Optional[FrozenSet[str]] = None
    host: str = '0.0.0.0'
    port: int = 8000
    transport: str = 'stdio'
    log_level: str = 'INFO'


def _argv_value(argv: List[str], flag: str) -> Optional[str]:
    for i, arg in enumerate(argv):
        if arg == flag and i + 1 < len(argv):
            return argv[i + 1]
    return None


def parse_enabled_tools(argv: List[str], environ: Mapping[str, str]) -> Optional[FrozenSet[str]]:
    """
    Parse enabled tools from --include-tools argument or ENABLED_TOOLS environment variable.
    Returns None if all tools should be enabled (default behavior).
    Returns a set of tool names if filtering is requested.
    """
    # Command-line argument wins over the environment
    enabled_tools_str = _argv_value(argv, '--include-tools') or environ.get('ENABLED_TOOLS')
    if not enabled_tools_str:
        return None

    tools = frozenset(tool.strip() for tool in enabled_tools_str.split(',') if tool.strip())
    return tools if tools else None


def _parse_port(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        return 8000


def load_settings(argv: Optional[List[str]] = None,
                  environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from argv and environment (defaults to the current process)."""
    argv = sys.argv if argv is None else argv
    environ = os.environ if environ is None else environ

    return Settings(
        credentials_config=environ.get('CREDENTIALS_CONFIG') or None,
        token_path=environ.get('TOKEN_PATH', 'token.json'),
        credentials_path=environ.get('CREDENTIALS_PATH', 'credentials.json'),
        service_account_path=environ.get('SERVICE_ACCOUNT_PATH', 'service_account.json'),
        drive_folder_id=environ.get('DRIVE_FOLDER_ID') or None,
        enabled_tools=parse_enabled_tools(argv, environ),
        host=environ.get('HOST') or environ.get('FASTMCP_HOST') or '0.0.0.0',
        port=_parse_port(environ.get('PORT') or environ.get('FASTMCP_PORT') or '8000'),
        transport=_argv_value(argv, '--transport') or 'stdio',
        log_level=(environ.get('LOG_LEVEL') or 'INFO').upper(),
    )


def configure_logging(level: str = 'INFO') -> None:
    """Send log records to stderr; stdout is reserved for the stdio transport."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s - %(message)s',
        stream=sys.stderr,
    )
