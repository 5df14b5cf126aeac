"""
Bindery catalog layer: discover decorated setters and build the option/command catalog.

What this module provides
- Identifier: opaque tokens correlating catalog entries with the setters they drive.
  • DEFAULT: the distinguished identifier for unrecognized positional arguments.
  • PropertyIdentifier: one per discovered option; wraps the setter and its declaring class.
  • CommandIdentifier: one per discovered command; also carries the class to instantiate.
- Catalog: options and commands, each sorted by ascending priority (ties keep
  discovery order), plus the DEFAULT identifier and a name resolver for parsers.
- introspect(*classes): build a Catalog from decorated property setters.
- getsink(cls) / accepts_unknown(*classes): catch-all sink lookup.

Discovery order
- For every class, writable properties are visited in the order their names are first
  defined while walking the MRO from the most basic class to the class itself. The
  attribute resolved on the class itself (so overrides win) is the one inspected, and
  the first class in the MRO whose own namespace holds it is the declaring class.

Identifiers are minted fresh on every introspect() call; none is ever reused.
"""
import inspect
import itertools
import operator
from collections import defaultdict
from typing import NamedTuple

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .faults import *

_HOOKS = ("__option__", "__commands__", "__unknown__")


class Identifier:
    """
    Opaque token minted by the catalog builder.

    Plain Identifier instances are never produced by introspection; the only one in
    use is DEFAULT, which stands for arguments that are neither options nor commands.
    """
    __slots__ = ()

    def __repr__(self):
        if self is DEFAULT:
            return "<default identifier>"
        return f"<{type(self).__name__.lower()} at {id(self):#x}>"


class PropertyIdentifier(Identifier):
    """
    Identifier bound to a property setter and the class that declares it.
    """
    __slots__ = ("_name", "_owner", "_setter")

    def __init__(self, name, owner, setter, /):
        self._name = name
        self._owner = owner
        self._setter = setter

    name = property(operator.attrgetter("_name"), doc="the property name")
    owner = property(operator.attrgetter("_owner"), doc="the class declaring the property")
    setter = property(operator.attrgetter("_setter"), doc="the decorated setter function")

    def accepts(self, target, /):
        """
        True when the target is an instance of the declaring class.
        """
        return isinstance(target, self._owner)

    def inject(self, target, value, /):
        """
        Invoke the setter found at introspection time on the target.

        The setter is called directly, so an override of the property further down
        the hierarchy does not change which function receives the value.
        """
        self._setter(target, value)

    def __repr__(self):
        return f"<{type(self).__name__.lower()} {self._owner.__qualname__}.{self._name}>"


class CommandIdentifier(PropertyIdentifier):
    """
    Identifier of a command: selecting it injects a new instance of `command`.
    """
    __slots__ = ("_command",)

    def __init__(self, name, owner, setter, command, /):
        super().__init__(name, owner, setter)
        self._command = command

    command = property(operator.attrgetter("_command"), doc="the class to instantiate")


DEFAULT = Identifier()


class Entry(NamedTuple):
    identifier: Identifier
    descriptor: object


def _hooked(attribute):
    function = getattr(attribute, "__func__", attribute)
    return inspect.isfunction(function) and any(hasattr(function, hook) for hook in _HOOKS)


def _members(cls, options, /):
    """
    Internal: yield (name, owner, property) for every property visible on cls.

    Binding metadata found anywhere but on a property setter is a malformed shape and
    is reported as an IntrospectionError. Accessor functions kept in the namespace
    next to a property built from them (x = property(get_x, set_x)) are not malformed.
    """
    if not isinstance(cls, type):
        trigger(
            IntrospectionError(f"cannot inspect {cls!r}, it is not a class"),
            code=FaultCode.UNINSPECTABLE_CLASS,
            title="uninspectable class",
            hint="pass the classes declaring the setters, not instances",
            **options
        )

    namespaces = []
    for base in reversed(cls.__mro__):
        try:
            namespaces.append((base, vars(base)))
        except TypeError as exception:
            trigger(
                IntrospectionError(f"cannot enumerate the attributes of {base.__qualname__!r}"),
                code=FaultCode.UNINSPECTABLE_CLASS,
                title="uninspectable class",
                hint="make sure the class exposes a regular namespace",
                cause=exception,
                **options
            )

    setters = {
        attribute.fset
        for _, namespace in namespaces
        for attribute in namespace.values()
        if isinstance(attribute, property) and attribute.fset is not None
    }

    order = {}
    for base, namespace in namespaces:
        for name, attribute in namespace.items():
            order.setdefault(name, None)
            if isinstance(attribute, property):
                if _hooked(attribute.fget) or _hooked(attribute.fdel):
                    trigger(
                        IntrospectionError(f"binding metadata of {base.__qualname__}.{name} is not on its setter"),
                        code=FaultCode.MALFORMED_PROPERTY,
                        title="malformed property",
                        hint="decorate the function passed to @%s.setter" % name,
                        **options
                    )
            elif _hooked(attribute) and getattr(attribute, "__func__", attribute) not in setters:
                trigger(
                    IntrospectionError(f"{base.__qualname__}.{name} carries binding metadata but is not a property"),
                    code=FaultCode.MALFORMED_PROPERTY,
                    title="malformed property",
                    hint="declare a property and decorate its setter",
                    **options
                )

    for name in order:
        owner = next(base for base, namespace in namespaces[::-1] if name in namespace)
        if isinstance(attribute := vars(owner)[name], property):
            yield name, owner, attribute


def _writables(cls, options, /):
    for name, owner, property in _members(cls, options):
        # read-only properties cannot receive values
        if property.fset is not None:
            yield name, owner, property.fset


def _sink(cls, options, /):
    for name, owner, setter in _writables(cls, options):
        if getattr(setter, "__unknown__", False):
            return name, setter
    return None


def getsink(cls, /, **options):
    """
    Return the first setter of cls flagged with @unknown, or None.

    Classes without writable properties simply have no sink.
    """
    sink = _sink(cls, configure(options))
    return sink[1] if sink is not None else None


def accepts_unknown(*classes, **options):
    """
    Check whether any of the classes exposes a catch-all sink for unknown arguments.
    """
    options = configure(options)
    return any(_sink(cls, options) is not None for cls in classes)


def _warn_duplicates(entries, names, options, /):
    seen = {}
    for entry in entries:
        for name in names(entry.descriptor):
            if name in seen:
                trigger(
                    DuplicatedNameWarning(f"{name!r} is declared by both {seen[name]!r} and {entry.identifier!r}"),
                    code=FaultCode.DUPLICATED_NAME,
                    title="duplicated name",
                    hint="the entry with the lowest priority wins when resolving names",
                    **options
                )
                continue
            seen[name] = entry.identifier


def introspect(*classes, **options):
    """
    Inspect the classes and build a Catalog from their decorated setters.

    Behavior
    - For each writable property, an @option descriptor takes precedence; otherwise every
      command descriptor attached to the setter is collected.
    - One identifier is minted per option and one per command descriptor.
    - Options and commands are sorted independently by ascending priority; sorting is
      stable so equal priorities keep discovery order.

    Errors
    - IntrospectionError when a class cannot be enumerated or carries malformed metadata.
      No partial catalog is returned.
    """
    options = configure(options)
    entries = defaultdict(list)

    for cls in classes:
        for name, owner, setter in _writables(cls, options):
            if (hook := getattr(setter, "__option__", None)) is not None:
                if getattr(setter, "__commands__", None) is not None:
                    trigger(
                        ShadowedCommandWarning(f"commands of {owner.__qualname__}.{name} are ignored"),
                        code=FaultCode.SHADOWED_COMMAND,
                        title="shadowed command",
                        hint="a setter is either an option or a set of commands",
                        **options
                    )
                entries["options"].append(Entry(PropertyIdentifier(name, owner, setter), hook()))
            elif (hook := getattr(setter, "__commands__", None)) is not None:
                for descriptor in hook():
                    identifier = CommandIdentifier(name, owner, setter, descriptor.target)
                    entries["commands"].append(Entry(identifier, descriptor))

    key = operator.attrgetter("descriptor.priority")
    catalog = Catalog(sorted(entries["options"], key=key), sorted(entries["commands"], key=key), **options)

    _warn_duplicates(catalog.options, operator.attrgetter("names"), options)
    _warn_duplicates(catalog.commands, lambda descriptor: (descriptor.name,), options)
    return catalog


class Catalog:
    """
    Ordered, partitioned collection of (identifier, descriptor) entries.

    - options: option entries sorted by priority.
    - commands: command entries sorted by priority.
    - default: the identifier for unrecognized positional arguments (DEFAULT).

    Iterating yields options first, then commands. Rendering (rich) lists both
    partitions as help tables.
    """

    def __init__(self, options=(), commands=(), /, **settings):
        self._options = tuple(options)
        self._commands = tuple(commands)
        self._settings = configure(settings)

        self._names = {}
        for identifier, descriptor in self._options:
            for name in descriptor.names:
                self._names.setdefault(name, identifier)
        for identifier, descriptor in self._commands:
            self._names.setdefault(descriptor.name, identifier)

    @property
    def options(self):
        return self._options

    @property
    def commands(self):
        return self._commands

    @property
    def default(self):
        return DEFAULT

    def resolve(self, token, /):
        """
        Map an option spelling ("--long", "-s") or a command name to its identifier.

        Anything else resolves to DEFAULT, the identifier of unrecognized arguments.
        """
        return self._names.get(token, DEFAULT)

    def __iter__(self):
        return itertools.chain(self._options, self._commands)

    def __len__(self):
        return len(self._options) + len(self._commands)

    def __repr__(self):
        return "catalog(options=%r, commands=%r)" % (
            [descriptor.longname for _, descriptor in self._options],
            [descriptor.name for _, descriptor in self._commands],
        )

    def __rich__(self):
        """
        Render the catalog as help tables.

        Palette keys
        - group-label, option-name, metavar, command-name, description, panel-title
        Customization
        - Define a mapping named __styles__ in __main__ to override any palette entry.
        """
        main = __import__("__main__")
        colorful = self._settings["colorful"]

        styles = defaultdict(str, {
            "group-label": "bold #FFFFFF",  # Pure white headers
            "option-name": "bold #00E6FF",  # CYAN for options
            "metavar": "bold #FFD600",  # AMBER for arguments
            "command-name": "bold #36C5F0",  # Sky-blue commands
            "description": "#9CA3AF",  # Muted gray
            "panel-title": "bold #FF4D94",
        } | getattr(main, "__styles__", {}))

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        def table():
            table = Table(box=None, show_header=False, show_edge=False, pad_edge=False, padding=(0, 2))
            table.add_column(no_wrap=True)
            table.add_column()
            return table

        renders = []

        if self._options:
            options = table()
            for _, descriptor in self._options:
                names = Text(", ").join(text(name, styler("option-name")) for name in descriptor.names)
                if not descriptor.flag:
                    names = Text.assemble(names, " ", text(descriptor.metavar, styler("metavar")))
                options.add_row(names, text(descriptor.descr, styler("description")))
            renders.extend((text("options:", styler("group-label")), options))

        if self._commands:
            commands = table()
            for _, descriptor in self._commands:
                commands.add_row(
                    text(descriptor.name, styler("command-name")),
                    text(descriptor.descr, styler("description"))
                )
            renders.extend((text("commands:", styler("group-label")), commands))

        if self._settings["fancy"]:
            title = text(getattr(main, "__prog__", "bindery"), styler("panel-title"))
            return Panel(Group(*renders), title=title, title_align="left")
        return Group(*renders)


__all__ = (
    # Identifiers
    "Identifier",
    "PropertyIdentifier",
    "CommandIdentifier",
    "DEFAULT",

    # Catalog
    "Entry",
    "Catalog",

    # Functions
    "introspect",
    "getsink",
    "accepts_unknown",
)
