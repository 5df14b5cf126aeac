r"""
Bindery descriptors and setter decorators.

Overview
- Descriptors
  • OptionDesc: metadata for a named option injected through a property setter
    (long name, optional short name, description, argument name/type, priority).
  • CommandDesc: metadata for a command; selecting it injects a fresh instance of
    its target class through the setter.

- Decorators (applied to the setter function, under @<property>.setter)
  • @option(...): attach one OptionDesc.
  • @command(...): attach one CommandDesc; repeatable.
  • @commands(CommandDesc(...), ...): attach an explicit list of CommandDesc.
  • @unknown: flag the setter as the catch-all sink for unrecognized arguments.

Metadata (sanitized on construction)
- longname: "--long-name" (required for options).
- shortname: Unset | "-x".
- name: "long-name" (commands, no dashes).
- descr: Unset | str | Text (short help), non-empty when provided.
- metavar: Unset | str; when omitted the option is flag-style (no argument).
- type: Callable converter the external parser applies to the argument.
- target: the class instantiated when the command is selected.
- priority: int ordering key inside the catalog (ascending, ties keep discovery order).

Quick example:
    >>> class Settings:
    ...     @property
    ...     def style(self):
    ...         return self._style
    ...
    ...     @style.setter
    ...     @option("--style", "-s", metavar="NAME", descr="citation style", priority=10)
    ...     def style(self, style):
    ...         self._style = style

Public API
- Classes: OptionDesc, CommandDesc
- Decorators: option, command, commands, unknown
"""
import functools
import operator
import re

from rich.text import Text

from .utils import *


class DescriptorType(type):
    """
    Metaclass that turns descriptor classes into introspectable records.

    Responsibilities
    - Expose every field listed in __introspectable__ as a read-only property via mirror().
    - Provide stable, readable __repr__/__rich_repr__ implementations for diagnostics.
    - Derive __typename__ (hyphenated, lowercased class name) for messages.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate the fields shared by every descriptor.

    - descr: optional short description. Unset becomes None; strings are trimmed and
      must not be empty.
    - priority: integer ordering key (booleans are rejected).
    """
    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)

    if not isinstance(priority := metadata["priority"], int) or isinstance(priority, bool):
        raise TypeError(f"{cls.__typename__} 'priority' must be an integer")


def _sanitize_option_metadata(cls, metadata, /):
    r"""
    Internal: validate names and argument shape of an option.

    Name formats
    - longname: r"--[^\W\d_](-?[^\W_]+)*"  (e.g., "--style", "--output-format")
    - shortname: r"-[^\W_]"                (e.g., "-s", "-2")
    """
    if not isinstance(longname := metadata["longname"], str):
        raise TypeError(f"{cls.__typename__} 'longname' must be a string")
    elif not re.fullmatch(r"--[^\W\d_](-?[^\W_]+)*", longname := longname.strip()):
        raise ValueError(f"{cls.__typename__} 'longname' must look like '--long-name'")
    metadata["longname"] = longname

    if not isinstance(shortname := metadata["shortname"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'shortname' must be a string")
    elif isinstance(shortname, str) and not re.fullmatch(r"-[^\W_]", shortname := shortname.strip()):
        raise ValueError(f"{cls.__typename__} 'shortname' must look like '-x'")
    metadata["shortname"] = coalesce(shortname)

    if not isinstance(metavar := metadata["metavar"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'metavar' must be a string")
    elif isinstance(metavar, str) and not (metavar := metavar.strip()):
        raise ValueError(f"{cls.__typename__} 'metavar' cannot be empty")
    metadata["metavar"] = coalesce(metavar)

    # Trust the converter's signature; only require callability.
    if not callable(metadata["type"]):
        raise TypeError(f"{cls.__typename__} 'type' must be callable")


def _sanitize_command_metadata(cls, metadata, /):
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not re.fullmatch(r"[^\W\d_](-?[^\W_]+)*", name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' must be a valid command name")
    metadata["name"] = name

    # Instantiation happens at evaluation time; here we only require a class.
    if not isinstance(metadata["target"], type):
        raise TypeError(f"{cls.__typename__} 'target' must be a class")


class OptionDesc(metaclass=DescriptorType):
    """
    Named option specification bound to a property setter.

    An option whose metavar is omitted is flag-style: the external parser yields
    no argument for it and the evaluator injects True.
    """

    __introspectable__ = (
        "longname",
        "shortname",
        "descr",
        "metavar",
        "type",
        "priority",
    )

    def __new__(
            cls,
            longname,
            shortname=Unset,
            /,
            descr=Unset,
            metavar=Unset,
            type=str,
            *,
            priority=0,
    ):
        metadata = {
            "longname": longname,
            "shortname": shortname,
            "descr": descr,
            "metavar": metavar,
            "type": type,
            "priority": priority,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_option_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def names(self):
        """
        All spellings of the option, long name first.
        """
        return tuple(name for name in (self._longname, self._shortname) if name is not None)

    @property
    def flag(self):
        """
        True when the option takes no argument.
        """
        return self._metavar is None

    def __option__(self):
        """
        Introspection hook: identify this descriptor as an option.
        """
        return self


class CommandDesc(metaclass=DescriptorType):
    """
    Command specification bound to a property setter.

    When the command is selected, the evaluator instantiates `target` with no
    arguments and injects the new instance through the setter.
    """

    __introspectable__ = (
        "name",
        "target",
        "descr",
        "priority",
    )

    def __new__(cls, name, target, /, descr=Unset, *, priority=0):
        metadata = {
            "name": name,
            "target": target,
            "descr": descr,
            "priority": priority,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_command_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    def __command__(self):
        """
        Introspection hook: identify this descriptor as a command.
        """
        return self


def option(*args, **kwargs):
    """
    Decorator/factory attaching an OptionDesc to a setter.

    Usage
        @value.setter
        @option("--format", "-f", metavar="FORMAT", descr="output format")
        def value(self, value): ...

    Behavior
    - Validates that it decorates a plain callable and enforces single application.
    - Returns the setter unchanged apart from the __option__ hook.
    """
    option = OptionDesc(*args, **kwargs)

    @rename("option")
    def wrapper(setter, /):
        if isinstance(setter, property) or not callable(setter):
            raise TypeError("@option() must be applied to a setter function")
        if hasattr(setter, "__option__"):
            raise TypeError("@option() must be applied only once")
        setter.__option__ = rename(lambda: option, "__option__")
        return setter

    return wrapper


def _attach_commands(setter, stacked, listed, /, *, name):
    """
    Internal: merge command descriptors into the setter's __commands__ hook.

    Stacked @command descriptors always precede @commands lists. Decorators apply
    bottom-up, so both are prepended to keep their top-to-bottom source order.
    """
    if isinstance(setter, property) or not callable(setter):
        raise TypeError(f"@{name}() must be applied to a setter function")
    if (hook := getattr(setter, "__commands__", None)) is not None:
        stacked += hook.stacked
        listed += hook.listed

    @rename("__commands__")
    def __commands__():
        return stacked + listed
    __commands__.stacked = stacked
    __commands__.listed = listed

    setter.__commands__ = __commands__
    return setter


def command(*args, **kwargs):
    """
    Decorator/factory attaching a CommandDesc to a setter (repeatable).

    Usage
        @action.setter
        @command("list", ListCommand, descr="list entries")
        @command("show", ShowCommand, descr="show one entry")
        def action(self, action): ...
    """
    descriptor = CommandDesc(*args, **kwargs)

    @rename("command")
    def wrapper(setter, /):
        return _attach_commands(setter, (descriptor,), (), name="command")

    return wrapper


def commands(*descriptors):
    """
    Decorator attaching an explicit list of CommandDesc to a setter.
    """
    for descriptor in descriptors:
        if not isinstance(descriptor, CommandDesc):
            raise TypeError("@commands() arguments must be command descriptors")

    @rename("commands")
    def wrapper(setter, /):
        return _attach_commands(setter, (), descriptors, name="commands")

    return wrapper


def unknown(setter=Unset, /):
    """
    Flag a setter as the catch-all sink for unrecognized arguments.

    The sink receives a single list with the string form of every unrecognized
    argument, in the order they were given. Usable bare (@unknown) or called (@unknown()).
    """
    @rename("unknown")
    def wrapper(setter, /):
        if isinstance(setter, property) or not callable(setter):
            raise TypeError("@unknown() must be applied to a setter function")
        if getattr(setter, "__unknown__", False):
            raise TypeError("@unknown() must be applied only once")
        setter.__unknown__ = True
        return setter

    if setter is Unset:
        return wrapper
    return wrapper(setter)


__all__ = (
    # Classes (descriptors)
    "OptionDesc",
    "CommandDesc",

    # Decorators
    "option",
    "command",
    "commands",
    "unknown",
)

# Internal metaclass; not part of the public API.
del DescriptorType
