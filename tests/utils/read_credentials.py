"""
Utility: load BULK_EXPORT_* settings for the manual functional scripts.

Settings come from tests/utils/credentials.txt (KEY=VALUE lines, with or
without the BULK_EXPORT_ prefix) layered over the process environment, so the
result can be handed straight to ExportConfig.from_env / BulkExportClient.from_env.
"""

from pathlib import Path
from typing import Dict, Mapping, Optional, Union
import os

from bulk_export_api.config import ENV_PREFIX


def _prefixed(key: str) -> str:
    key = key.strip().upper()
    return key if key.startswith(ENV_PREFIX) else ENV_PREFIX + key


def read_credentials(path: Optional[Union[str, Path]] = None,
                     environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Return BULK_EXPORT_* settings; file values win over the environment.

    Unrelated environment variables are never included, and empty values are
    dropped so they cannot mask a real setting.
    """
    env = os.environ if environ is None else environ
    creds = {k: v for k, v in env.items() if k.startswith(ENV_PREFIX) and v}

    if path is None:
        path = Path(__file__).parent / "credentials.txt"
    p = Path(path)
    if p.exists():
        for ln in p.read_text().splitlines():
            ln = ln.strip()
            if not ln or ln.startswith("#") or "=" not in ln:
                continue
            k, v = ln.split("=", 1)
            v = v.strip().strip('"')
            if v:
                creds[_prefixed(k)] = v
    return creds
