"""
Copyright (c) 2020, the Decred developers
See LICENSE for details

Cross-validation of the scalar engine against an independent implementation
of the same arithmetic, such as a VM program. Operands travel as a flat stack
of 32-bit values, the least significant limb of the first operand consumed
first.
"""

import shlex
import subprocess
import textwrap

from ecgfp5 import ECGFp5Error
from ecgfp5.crypto.scalar import (
    LIMB_BITS,
    LIMB_MASK,
    LIMBS,
    ORDER,
    Scalar,
    intToLimbs,
    limbsToInt,
)
from ecgfp5.util import helpers


log = helpers.getLogger("ORACLE")

# Procedure names understood by oracles.
MONT_MUL = "mont_mul"
TO_MONT = "to_mont"
FROM_MONT = "from_mont"
INV = "inv"

# Number of scalar operands each procedure consumes.
ARITY = {MONT_MUL: 2, TO_MONT: 1, FROM_MONT: 1, INV: 1}


def encodeStack(*operands):
    """
    Lay the operands out as an oracle input stack. The limbs of all operands
    are concatenated in their natural order and the whole sequence is
    reversed.

    Args:
        *operands (Scalar): the operands, in procedure order.

    Returns:
        list(int): the stack values.
    """
    stack = []
    for s in operands:
        stack.extend(s.limbs)
    stack.reverse()
    return stack


def decodeStack(values):
    """
    Read a result scalar from an oracle output stack. The first ten values are
    the result limbs, least significant first. Anything deeper is ignored.

    Args:
        values (list(int)): the output stack, top first.

    Returns:
        Scalar: the result.

    Raises:
        ECGFp5Error: if fewer than ten values are present or a value is not a
            32-bit word.
    """
    if len(values) < LIMBS:
        raise ECGFp5Error(f"oracle returned {len(values)} values, need {LIMBS}")
    limbs = values[:LIMBS]
    for v in limbs:
        if not 0 <= v <= LIMB_MASK:
            raise ECGFp5Error(f"oracle value out of 32-bit range: {v}")
    return Scalar(limbs)


class ScalarOracle:
    """
    A parent class for oracles. Child classes implement execute. The four
    operations encode their operands, run the named procedure and decode the
    result.
    """

    def execute(self, procedure, stack):
        """
        Run a procedure on an input stack.

        Args:
            procedure (str): one of mont_mul, to_mont, from_mont, inv.
            stack (list(int)): the input stack, as built by encodeStack.

        Returns:
            list(int): the output stack, top first.
        """
        raise NotImplementedError("execute must be implemented by child class")

    def call(self, procedure, *operands):
        if procedure not in ARITY:
            raise ECGFp5Error(f"unknown oracle procedure {procedure!r}")
        if len(operands) != ARITY[procedure]:
            raise ECGFp5Error(
                f"{procedure} takes {ARITY[procedure]} operands, got {len(operands)}"
            )
        return decodeStack(self.execute(procedure, encodeStack(*operands)))

    def montMul(self, a, b):
        return self.call(MONT_MUL, a, b)

    def toMont(self, a):
        return self.call(TO_MONT, a)

    def fromMont(self, a):
        return self.call(FROM_MONT, a)

    def inv(self, a):
        return self.call(INV, a)


class ReferenceOracle(ScalarOracle):
    """
    ReferenceOracle computes the procedures with Python's arbitrary precision
    integers, sharing nothing with the limb arithmetic but the modulus.
    """

    R = 1 << (LIMBS * LIMB_BITS)
    R_INV = pow(R, -1, ORDER)

    def execute(self, procedure, stack):
        arity = ARITY.get(procedure)
        if arity is None:
            raise ECGFp5Error(f"unknown oracle procedure {procedure!r}")
        if len(stack) != arity * LIMBS:
            raise ECGFp5Error(
                f"{procedure} expects {arity * LIMBS} stack values, got {len(stack)}"
            )
        values = stack[::-1]
        ops = [limbsToInt(values[k * LIMBS : (k + 1) * LIMBS]) for k in range(arity)]
        if procedure == MONT_MUL:
            r = ops[0] * ops[1] * self.R_INV % ORDER
        elif procedure == TO_MONT:
            r = ops[0] * self.R % ORDER
        elif procedure == FROM_MONT:
            r = ops[0] * self.R_INV % ORDER
        else:
            r = pow(ops[0], ORDER - 2, ORDER)
        return list(intToLimbs(r))


class ProcessOracle(ScalarOracle):
    """
    ProcessOracle runs an external program for every call. The procedure name
    is appended to the command line, the input stack is written to stdin as
    whitespace-separated decimal integers, and the output stack is read back
    from stdout in the same format.
    """

    def __init__(self, command, timeout=60):
        """
        Args:
            command (str or list(str)): the program and its leading arguments.
                A string is split with shell rules.
            timeout (float): optional. Seconds to wait for each call.
        """
        self.command = shlex.split(command) if isinstance(command, str) else list(command)
        if not self.command:
            raise ECGFp5Error("empty oracle command")
        self.timeout = timeout

    def execute(self, procedure, stack):
        args = self.command + [procedure]
        try:
            p = subprocess.run(
                args,
                input=" ".join(str(v) for v in stack),
                text=True,
                capture_output=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ECGFp5Error(
                f"oracle {procedure} timed out after {self.timeout} seconds"
            ) from e
        except OSError as e:
            raise ECGFp5Error(f"cannot run oracle {args!r}: {e}") from e
        if p.returncode != 0:
            raise ECGFp5Error(
                textwrap.dedent(
                    f"""
                    oracle failed (procedure={procedure!r}, exit={p.returncode}).

                    --- stdout ---
                    {p.stdout}
                    --- stderr ---
                    {p.stderr}
                    """
                ).strip()
            )
        try:
            return [int(w) for w in p.stdout.split()]
        except ValueError as e:
            raise ECGFp5Error(f"unparsable oracle output: {p.stdout!r}") from e


class Mismatch:
    """
    A procedure whose oracle result differed from the engine's.
    """

    def __init__(self, procedure, inputs, expected, got):
        self.procedure = procedure
        self.inputs = inputs
        self.expected = expected
        self.got = got

    def __repr__(self):
        return (
            f"Mismatch({self.procedure}, inputs={self.inputs!r}, "
            f"expected={self.expected!r}, got={self.got!r})"
        )


class CrossCheckReport:
    """
    The outcome of a crossValidate run.
    """

    def __init__(self):
        self.rounds = 0
        self.checks = 0
        self.mismatches = []

    @property
    def ok(self):
        return not self.mismatches

    def record(self, procedure, inputs, expected, got):
        self.checks += 1
        if got == expected:
            return True
        m = Mismatch(procedure, inputs, expected, got)
        self.mismatches.append(m)
        log.error(f"oracle mismatch: {m!r}")
        return False


def crossValidate(oracle, rounds, sampler=None):
    """
    Compare the engine with an oracle on random operands. Every round checks
    mont_mul(a, b), to_mont(a), from_mont on the Montgomery form of a, and
    inv(a).

    Args:
        oracle (ScalarOracle): the independent implementation.
        rounds (int): the number of random operand pairs.
        sampler (func() -> Scalar): optional. Source of operands. Defaults to
            Scalar.rand.

    Returns:
        CrossCheckReport: the checks performed and any mismatches.

    Raises:
        ECGFp5Error: if the oracle itself fails.
    """
    sampler = sampler if sampler else Scalar.rand
    report = CrossCheckReport()
    for i in range(rounds):
        a = sampler()
        b = sampler()
        aMont = a.toMont()
        cases = (
            (MONT_MUL, (a, b), a.montMul(b), oracle.montMul),
            (TO_MONT, (a,), aMont, oracle.toMont),
            (FROM_MONT, (aMont,), aMont.fromMont(), oracle.fromMont),
            (INV, (a,), a.inv(), oracle.inv),
        )
        passed = True
        for procedure, inputs, expected, fn in cases:
            passed &= report.record(procedure, inputs, expected, fn(*inputs))
        report.rounds += 1
        if passed:
            log.debug(f"round {i} passed")
    return report
