from rich import print
from rich.pretty import pprint

from bindery import *


class Bibliography:
    pass


class Citation:
    pass


class Tool:
    @property
    def style(self):
        return self._style

    @style.setter
    @option("--style", "-s", metavar="NAME", descr="citation style", priority=10)
    def style(self, style):
        self._style = style

    @property
    def debug(self):
        return self._debug

    @debug.setter
    @option("--debug", "-d", descr="print stack traces")
    def debug(self, debug):
        self._debug = debug

    @property
    def action(self):
        return self._action

    @action.setter
    @command("bibliography", Bibliography, descr="generate a bibliography")
    @command("citation", Citation, descr="generate citations", priority=1)
    def action(self, action):
        self._action = action

    @property
    def files(self):
        return self._files

    @files.setter
    @unknown
    def files(self, files):
        self._files = files


if __name__ == '__main__':
    catalog = introspect(Tool, fancy=True)
    print(catalog)

    tool = Tool()
    evaluate(
        map(lambda token: Value(catalog.resolve(token[0]), token[1]), [
            ("--style", "apa"),
            ("-d", None),
            ("citation", None),
            ("refs.bib", "refs.bib"),
        ]),
        tool,
        shell=True,
    )
    pprint(vars(tool))
