"""
Copyright (c) 2019, Brian Stafford
Copyright (c) 2019-2020, the Decred developers
See LICENSE for details

Configuration settings for the cross-validation runner.
"""

import argparse
import os

from ecgfp5 import ECGFp5Error
from ecgfp5.util import helpers


APP_NAME = "ECGFp5"

# The master configuration file name.
CONFIG_NAME = "ecgfp5.conf"

# Environment variable naming the oracle command when neither the command
# line nor the configuration file does.
ORACLE_ENV = "ECGFP5_ORACLE"

DEFAULT_ROUNDS = 8
DEFAULT_TIMEOUT = 60
DEFAULT_LOG_LEVEL = "info"

log = helpers.getLogger("CONFIG")


def parseArgs(args=None):
    """
    Parse command line arguments.

    Args:
        args (list(str)): optional. Defaults to sys.argv[1:].

    Returns:
        argparse.Namespace: the parsed options. Options that were not given
            are None.
    """
    parser = argparse.ArgumentParser(
        prog="ecgfp5-check",
        description="Cross-validate ecGFp5 scalar field arithmetic against an oracle.",
    )
    parser.add_argument(
        "--oracle",
        help=f"oracle command, run once per call. Defaults to ${ORACLE_ENV}, "
        "then to the built-in big-integer reference",
    )
    parser.add_argument("--rounds", type=int, help="random operand pairs to check")
    parser.add_argument("--timeout", type=float, help="seconds to wait per oracle call")
    parser.add_argument("--loglevel", help="debug, info, warning, error or a number")
    parser.add_argument("--logfile", help="also write logs to this rotating file")
    parser.add_argument("--datadir", help="directory holding the configuration file")
    parser.add_argument(
        "--save", action="store_true", help="persist the effective settings"
    )
    return parser.parse_args(args)


class Config:
    """
    Config is configuration settings. The configuration file is JSON
    formatted. Command line options take precedence over file settings.
    """

    def __init__(self, args=None):
        """
        Args:
            args (list(str)): optional. Command line arguments. Defaults to
                sys.argv[1:].

        Raises:
            ECGFp5Error: if a setting is invalid.
        """
        opts = parseArgs(args)
        self.dataDir = opts.datadir or helpers.appDataDir(APP_NAME)
        if not helpers.mkdir(self.dataDir):
            raise ECGFp5Error(f"data directory {self.dataDir} is a file")
        self.path = os.path.join(self.dataDir, CONFIG_NAME)
        try:
            self.file = helpers.fetchSettingsFile(self.path)
        except (ValueError, OSError) as e:
            raise ECGFp5Error(f"cannot read settings file {self.path}: {e}") from e
        if not isinstance(self.file, dict):
            raise ECGFp5Error(f"settings file {self.path} must hold a JSON object")
        self.saveRequested = opts.save
        for k in ("oracle", "rounds", "timeout", "loglevel", "logfile"):
            v = getattr(opts, k)
            if v is not None:
                self.set(k, v)
        self.normalize()

    def set(self, k, v):
        """
        Set the configuration option. The configuration is not saved, so `save`
        should be called separately.

        Args:
            k (str): The setting key.
            v (JSON-encodable): The value.
        """
        self.file[k] = v

    def get(self, *keys):
        """
        Retrieve the setting at the provided key path. Multiple keys can be
        provided, with each successive key being retrieved from the previous
        key's value.

        Args:
            *keys (str): Recursive key list.

        Returns:
            mixed: The configuration value.
        """
        d = self.file
        rVal = None
        for k in keys:
            if not isinstance(d, dict) or k not in d:
                return None
            rVal = d[k]
            d = rVal
        return rVal

    def normalize(self):
        """
        Perform attribute checks and initialization.
        """
        file = self.file
        file.setdefault("rounds", DEFAULT_ROUNDS)
        file.setdefault("timeout", DEFAULT_TIMEOUT)
        file.setdefault("loglevel", DEFAULT_LOG_LEVEL)
        if not isinstance(file["rounds"], int) or file["rounds"] < 1:
            raise ECGFp5Error(f"rounds must be a positive integer, got {file['rounds']!r}")
        if not isinstance(file["timeout"], (int, float)) or file["timeout"] <= 0:
            raise ECGFp5Error(f"timeout must be positive, got {file['timeout']!r}")
        if not isinstance(file["loglevel"], (str, int)):
            raise ECGFp5Error(
                f"loglevel must be a name or a number, got {file['loglevel']!r}"
            )
        for k in ("logfile", "oracle"):
            v = file.get(k)
            if v is not None and not isinstance(v, str):
                raise ECGFp5Error(f"{k} must be a string, got {v!r}")

    @property
    def oracleCommand(self):
        """
        The oracle command, or None for the built-in reference.
        """
        return self.get("oracle") or os.environ.get(ORACLE_ENV) or None

    def save(self):
        """
        Save the file.
        """
        helpers.saveJSON(self.path, self.file, indent=4, sort_keys=True)
        log.info(f"settings saved to {self.path}")


def load(args=None):
    """
    Load and return the configuration.

    Args:
        args (list(str)): optional. Command line arguments.

    Returns:
        Config: The configuration.
    """
    return Config(args)
