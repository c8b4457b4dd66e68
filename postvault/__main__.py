"""
Entry point: `python -m postvault`.

Configuration comes from the environment (CREATOR_ID, TO_ID, FROM_ID, ...),
see postvault.utils.config.
"""

import os
import sys

from postvault.core.controller import PostvaultController
from postvault.core.errors import ConfigError, PostvaultError
from postvault.core.logger import get_logger, initialize_logging
from postvault.utils.config import RunConfig


def main() -> int:
    try:
        config = RunConfig.from_env()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    initialize_logging(config.log_dir, config.log_level_value)
    logger = get_logger('main')

    controller = PostvaultController(config, logger=logger)
    try:
        stats = controller.run()
    except PostvaultError as e:
        logger.error(f"Crawl aborted: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130

    logger.info(
        f"Finished: {stats['pages']} pages, {stats['archived']} archived, {stats['failed']} failed, "
        f"{stats['restricted']} restricted, {stats['skipped']} skipped"
    )
    summary = controller.errors.get_error_summary()
    if summary['total_errors'] or summary['total_warnings']:
        controller.errors.save_error_report(os.path.join(config.log_dir, "error_report.txt"))
    return 0


if __name__ == "__main__":
    sys.exit(main())
