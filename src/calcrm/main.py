"""Application entry point for the calibration CRM backend server."""

from calcrm.app import App
from calcrm.config import Config
from calcrm.logging import setup_logging
from calcrm.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
