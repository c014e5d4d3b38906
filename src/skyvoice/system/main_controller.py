"""
Main controller: loads preferences, starts the speech, notification and MAVLink
threads, and coordinates graceful shutdown.
"""
import logging
import logging.config
import time
from skyvoice.config import settings
from skyvoice.config.config_manager import ConfigManager
from skyvoice.system.skyvoice_system import SkyvoiceSystem

LOGGING_CONFIG = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'default': {
            'format': '[%(asctime)s] %(levelname)s %(name)s: %(message)s',
            'datefmt': '%Y-%m-%dT%H:%M:%S',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'default',
            'level': 'DEBUG',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': settings.LOG_LEVEL,
    },
}

def main():
    logging.config.dictConfig(LOGGING_CONFIG)
    logger = logging.getLogger(__name__)
    logger.info("Starting SKYVOICE system...")

    config_manager = ConfigManager()
    system = SkyvoiceSystem(config_manager=config_manager)
    system.start()
    logger.info(f"Listening for vehicle on {system.controller.connection_string}.")

    # Main loop: wait until interrupted or a worker dies
    try:
        while system.notify.is_alive():
            time.sleep(0.5)
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt received. Shutting down.")
    finally:
        logger.info("Main loop exiting. Initiating shutdown.")
        system.stop()
        logger.info("SKYVOICE system shutdown complete.")

if __name__ == "__main__":
    main()
