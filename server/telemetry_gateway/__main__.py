"""Run the telemetry gateway with uvicorn: ``python -m telemetry_gateway``."""

import uvicorn

from .config import config


def main() -> None:
    uvicorn.run("telemetry_gateway.app:app", host=config.host, port=config.port)


if __name__ == "__main__":
    main()
