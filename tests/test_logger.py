import logging
import os
import tempfile
import unittest
from unittest import mock

import support  # noqa: F401
from rich.logging import RichHandler

from utils import config
from utils.logger import get_logger


class LoggerTestCase(unittest.TestCase):
    def _fresh(self, name):
        logger = logging.getLogger(name)
        self.addCleanup(self._drop_handlers, logger)
        return logger

    @staticmethod
    def _drop_handlers(logger):
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

    def test_log_file_uses_closable_file_handler(self):
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = os.path.join(tmpdir.name, "shopfront.log")
        self._fresh("logger-file-test")

        with mock.patch.object(config, "LOG_FILE", path):
            logger = get_logger("logger-file-test")
        logger.info("cart synced")

        (handler,) = logger.handlers
        self.assertIsInstance(handler, logging.FileHandler)
        handler.close()
        self.assertIsNone(handler.stream)
        with open(path, encoding="utf-8") as f:
            self.assertIn("cart synced", f.read())

    def test_defaults_to_rich_handler(self):
        self._fresh("logger-rich-test")
        with mock.patch.object(config, "LOG_FILE", None):
            logger = get_logger("logger-rich-test")
        self.assertIsInstance(logger.handlers[0], RichHandler)
        self.assertFalse(logger.propagate)
