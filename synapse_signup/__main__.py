"""Run the registration broker with uvicorn: ``python -m synapse_signup``."""

import logging

import uvicorn

from synapse_signup.config.settings import get_settings


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "synapse_signup.api.main:app",
        host=settings.host,
        port=settings.port,
        proxy_headers=settings.trust_forwarded_for,
        forwarded_allow_ips=settings.forwarded_allow_ips,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
