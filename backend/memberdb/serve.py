# backend/memberdb/serve.py
"""
Production entrypoint: `python -m memberdb.serve`.

Everything is configured from the environment so the same image runs
behind a TLS-terminating proxy or serving TLS itself.
"""

import os
from typing import Dict, Optional

import uvicorn

APP_PATH = "memberdb.main:app"

_SSL_ENV = {
    "ssl_certfile": "SSL_CERTFILE",
    "ssl_keyfile": "SSL_KEYFILE",
    "ssl_ca_certs": "SSL_CA_CERTS",
    "ssl_keyfile_password": "SSL_KEYFILE_PASSWORD",
}


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes", "on"}


def _ssl_options() -> Dict[str, Optional[str]]:
    return {option: os.environ[env] for option, env in _SSL_ENV.items() if os.getenv(env)}


def main() -> None:
    uvicorn.run(
        APP_PATH,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=_env_flag("RELOAD"),
        log_level=os.getenv("LOG_LEVEL", "info"),
        proxy_headers=True,
        forwarded_allow_ips=os.getenv("FORWARDED_ALLOW_IPS", "*"),
        **_ssl_options(),
    )


if __name__ == "__main__":
    main()
