import argparse
import sys

from core.core_manager import CoreManager
from core.exceptions import BootstrapLoadError, ConfigurationLoadError, ProcessStartError
from core.signal_handlers import install_signal_handlers
from utils.logger_factory import log_exception


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Start a virtualized application.")
    parser.add_argument("application_data", nargs="?", default=None,
                        help="application data file (defaults to the configured one)")
    args = parser.parse_args(argv)

    manager = CoreManager()
    try:
        manager.initialize()
    except ConfigurationLoadError:
        # Already reported through the bootstrap logger.
        return 2

    install_signal_handlers(manager)
    logger = manager.logger
    try:
        process = manager.start_process(args.application_data)
    except (BootstrapLoadError, ProcessStartError) as e:
        log_exception(logger, e, context="start_process")
        return 1

    exit_code = process.wait()
    logger.message("Process {0} exited with code {1}", process.pid, exit_code)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
