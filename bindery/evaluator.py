"""
Bindery evaluator: inject parsed command-line values into live target objects.

What this module provides
- Value: (identifier, value) pair produced by an external parser from a Catalog.
- Ok / InternalError: the outcome of dispatching one value. InternalError represents
  an identifier outside the catalog's known set, which must never happen when the
  parser and the evaluator share a catalog.
- evaluate(values, *targets): apply every value, then hand unrecognized arguments to
  the first catch-all sink found among the targets.

Semantics
- Command identifiers: a fresh instance of the command class is built for each value
  and injected into every target accepting the setter.
- Option identifiers: the value is injected into every accepting target; an absent
  value (None) means flag-style presence and injects True.
- DEFAULT: the string form of the value is buffered; once all values were applied the
  buffer is delivered in one call to the first sink, or a MissingSinkError is raised.
- Values applied before a failure stay applied; nothing is rolled back.
"""
from typing import Any, NamedTuple

from .catalog import Identifier, PropertyIdentifier, CommandIdentifier, DEFAULT, _sink
from .faults import *


class Value(NamedTuple):
    identifier: Identifier
    value: Any = None


class Ok(NamedTuple):
    invocations: int


class InternalError(NamedTuple):
    identifier: Any
    message: str


def _instantiate(command, options, /):
    try:
        return command()
    except Exception as exception:
        trigger(
            InstantiationError(f"cannot instantiate command {command.__qualname__!r}"),
            code=FaultCode.UNINSTANTIABLE_COMMAND,
            title="uninstantiable command",
            hint="commands must be classes constructible without arguments",
            cause=exception,
            **options
        )


def _inject(identifier, targets, value, options, /):
    invocations = 0
    for target in targets:
        if not identifier.accepts(target):
            continue
        try:
            identifier.inject(target, value)
        except Exception as exception:
            trigger(
                DispatchError(f"cannot set {identifier.name!r} on {type(target).__qualname__!r}"),
                code=FaultCode.FAILED_DISPATCH,
                title="failed dispatch",
                hint="the setter raised %s" % type(exception).__name__,
                cause=exception,
                **options
            )
        invocations += 1
    return Ok(invocations)


def _dispatch(value, targets, unknown, options, /):
    """
    Internal: apply a single value and report the outcome as data.
    """
    match value.identifier:
        case CommandIdentifier() as identifier:
            return _inject(identifier, targets, _instantiate(identifier.command, options), options)
        case PropertyIdentifier() as identifier:
            return _inject(identifier, targets, True if value.value is None else value.value, options)
        case identifier if identifier is DEFAULT:
            if value.value is None:
                return InternalError(identifier, "unrecognized argument without a value")
            unknown.append(str(value.value))
            return Ok(0)
        case identifier:
            return InternalError(identifier, f"unknown option identifier {identifier!r}")


def evaluate(values, /, *targets, **options):
    """
    Inject the parsed values into the target objects.

    Parameters
    - values: iterable of Value, in command-line order.
    - targets: live objects; each setter is only invoked on instances of its declaring class.
    - options: shell, fancy, colorful (see faults.configure).

    Errors
    - InstantiationError: a command class could not be built without arguments.
    - DispatchError: a setter raised (chained as __cause__).
    - MissingSinkError: unknown arguments were collected but no target has a sink.
    - InvariantViolationError: an identifier outside the catalog reached the evaluator.
    """
    options = configure(options)
    unknown = []

    for value in values:
        match _dispatch(value, targets, unknown, options):
            case Ok():
                pass
            case InternalError(message=message):
                trigger(
                    InvariantViolationError(message),
                    code=FaultCode.UNKNOWN_IDENTIFIER,
                    title="invariant violation",
                    hint="values must come from the catalog built for these targets",
                    **options
                )

    if not unknown:
        return

    for target in targets:
        if (sink := _sink(type(target), options)) is None:
            continue
        name, setter = sink
        try:
            setter(target, unknown)
        except Exception as exception:
            trigger(
                DispatchError(f"cannot set {name!r} on {type(target).__qualname__!r}"),
                code=FaultCode.FAILED_DISPATCH,
                title="failed dispatch",
                hint="the sink raised %s" % type(exception).__name__,
                cause=exception,
                **options
            )
        return

    trigger(
        MissingSinkError(f"no property accepts the unknown arguments {unknown!r}"),
        code=FaultCode.MISSING_SINK,
        title="missing sink",
        hint="decorate a setter of one of the targets with @unknown",
        **options
    )


__all__ = (
    "Value",
    "Ok",
    "InternalError",
    "evaluate",
)
