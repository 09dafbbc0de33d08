"""
Copyright (c) 2020, the Decred developers
See LICENSE for details

Command line entry point. Cross-validates the scalar engine against an oracle
and exits non-zero on any mismatch or failure.
"""

import sys

from ecgfp5 import ECGFp5Error, config, oracle
from ecgfp5.util import helpers


log = helpers.getLogger("ECGFP5")


def buildOracle(cfg):
    """
    Create the oracle named by the configuration.

    Args:
        cfg (config.Config): the configuration.

    Returns:
        oracle.ScalarOracle: the oracle.
    """
    cmd = cfg.oracleCommand
    if cmd:
        return oracle.ProcessOracle(cmd, timeout=cfg.get("timeout"))
    return oracle.ReferenceOracle()


def main(args=None):
    try:
        cfg = config.load(args)
    except ECGFp5Error as e:
        print(f"configuration error: {e}", file=sys.stderr)
        return 1
    helpers.prepareLogging(
        cfg.get("logfile"), logLvl=helpers.getLogLevel(cfg.get("loglevel"))
    )
    if cfg.saveRequested:
        cfg.save()
    orc = buildOracle(cfg)
    rounds = cfg.get("rounds")
    log.info(f"cross-validating {rounds} rounds against {type(orc).__name__}")
    try:
        report = oracle.crossValidate(orc, rounds)
    except ECGFp5Error as e:
        log.error(helpers.formatTraceback(e))
        return 1
    log.info(
        f"{report.checks} checks over {report.rounds} rounds, "
        f"{len(report.mismatches)} mismatches"
    )
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
