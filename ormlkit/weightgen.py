"""Render benchmark results into weight source files through a template."""

from __future__ import annotations

import argparse
import json
import re
import sys
from dataclasses import asdict, dataclass, field, is_dataclass
from typing import Any

VERSION = "01.0"


class WeightGenError(Exception):
    """Input data, header or template could not be used."""


class TemplateError(Exception):
    """The template is malformed or uses an unknown helper."""


@dataclass
class BenchData:
    """Benchmark result of one extrinsic."""

    name: str
    base_weight: int
    base_reads: int
    base_writes: int

    @classmethod
    def from_dict(cls, data: Any) -> "BenchData":
        """Build from a decoded JSON object, checking every field."""
        if not isinstance(data, dict):
            raise ValueError("benchmark entry must be a JSON object")
        limits = {"base_weight": 64, "base_reads": 32, "base_writes": 32}
        try:
            if not isinstance(data["name"], str):
                raise ValueError("field 'name' must be a string")
            for key, bits in limits.items():
                value = data[key]
                if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < 2**bits:
                    raise ValueError(f"field {key!r} must be an unsigned {bits}-bit integer")
        except KeyError as exc:
            raise ValueError(f"missing field {exc.args[0]!r}") from None
        return cls(data["name"], *(data[key] for key in limits))


def _render_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return "[" + "".join(_render_value(item) + ", " for item in value) + "]"
    if isinstance(value, dict):
        return "[object]"
    return str(value)


def underscore(value: Any) -> str:
    """Put an underscore between every group of three characters, counted from the right."""
    text = _render_value(value)
    head = len(text) % 3 or 3
    return "_".join([text[:head]] + [text[i:i + 3] for i in range(head, len(text), 3)])


def join(value: Any) -> str:
    """Join the items of a list with spaces; other values render as they are."""
    if isinstance(value, list):
        return " ".join(_render_value(item) for item in value)
    return _render_value(value)


def parse_bench_data(text: str) -> list[BenchData]:
    """Parse a JSON array of benchmark results."""
    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError("benchmark data must be a JSON array")
    return [BenchData.from_dict(entry) for entry in data]


def parse_lines(text: str) -> list[BenchData] | None:
    """Return the benchmark data on the first line that holds it, if any."""
    for line in text.split("\n"):
        try:
            return parse_bench_data(line)
        except ValueError:
            continue
    return None


_TAG = re.compile(r"\{\{(~?)(\{.*?\}|!--.*?--|.*?)(~?)\}\}", re.S)
_ARG = re.compile(r'"[^"]*"|\'[^\']*\'|\S+')
_HELPERS = {"underscore": underscore, "join": join}


@dataclass
class _Block:
    name: str
    args: list[str]
    body: list = field(default_factory=list)
    inverse: list = field(default_factory=list)


def _tokenize(template: str) -> tuple[list[str], list[tuple[str, str]]]:
    texts, tags, pos = [], [], 0
    for match in _TAG.finditer(template):
        texts.append(template[pos:match.start()])
        pos = match.end()
        left, body, right = bool(match.group(1)), match.group(2), bool(match.group(3))
        if body.startswith("!"):
            kind, content = "comment", ""
        else:
            content = body.strip("{}").strip()
            kind = {"#": "open", "/": "close"}.get(content[:1], "expr")
            if kind != "expr":
                content = content[1:].strip()
            elif content in ("else", "^"):
                kind = "else"
            elif not content:
                raise TemplateError(f"empty expression {match.group(0)!r}")
        tags.append((kind, content, left, right))
    texts.append(template[pos:])

    for index, (kind, _, left, right) in enumerate(tags):
        if left:
            texts[index] = texts[index].rstrip()
        if right:
            texts[index + 1] = texts[index + 1].lstrip()
        if kind != "expr" and not (left or right):
            _trim_standalone(texts, index)
    return texts, [(kind, content) for kind, content, _, _ in tags]


def _trim_standalone(texts: list[str], index: int) -> None:
    """Drop the line of a tag that stands alone on it, as Handlebars does."""
    before, after = texts[index], texts[index + 1]
    last_nl = before.rfind("\n")
    if before[last_nl + 1:].strip() or (last_nl < 0 and index != 0):
        return
    first_nl = after.find("\n")
    at_end = index + 1 == len(texts) - 1
    if (after if first_nl < 0 else after[:first_nl]).strip() or (first_nl < 0 and not at_end):
        return
    texts[index] = before[:last_nl + 1]
    texts[index + 1] = "" if first_nl < 0 else after[first_nl + 1:]


def _parse(template: str) -> list:
    texts, tags = _tokenize(template)
    root: list = []
    stack: list[tuple[_Block, list]] = []
    target = root
    for text, (kind, content) in zip(texts, tags):
        if text:
            target.append(text)
        if kind in ("open", "expr"):
            name, *args = _ARG.findall(content)
            if kind == "expr":
                target.append((name, args))
                continue
            block = _Block(name, args)
            target.append(block)
            stack.append((block, target))
            target = block.body
        elif kind == "else":
            if not stack or target is stack[-1][0].inverse:
                raise TemplateError("unexpected {{else}}")
            target = stack[-1][0].inverse
        elif kind == "close":
            if not stack or stack[-1][0].name != content:
                raise TemplateError(f"unexpected closing tag {content!r}")
            target = stack.pop()[1]
    if texts[-1]:
        target.append(texts[-1])
    if stack:
        raise TemplateError(f"unclosed block {stack[-1][0].name!r}")
    return root


def _truthy(value: Any) -> bool:
    return value is not None and value is not False and value != 0 and value not in ("", [], {})


def _walk(value: Any, path: str) -> Any:
    for segment in filter(None, re.split(r"[./]", path)):
        if isinstance(value, dict):
            value = value.get(segment)
        elif isinstance(value, list) and segment.isdigit() and int(segment) < len(value):
            value = value[int(segment)]
        else:
            return None
    return value


def _to_json(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, dict):
        return {str(key): _to_json(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_json(item) for item in value]
    return value


class _Renderer:
    def __init__(self, root: Any) -> None:
        self.root = root

    def render(self, nodes: list, frames: list) -> str:
        return "".join(self._node(node, frames) for node in nodes)

    def _node(self, node: Any, frames: list) -> str:
        if isinstance(node, str):
            return node
        if isinstance(node, tuple):
            name, args = node
            if name in _HELPERS:
                if not args:
                    raise TemplateError(f"helper {name!r} needs a parameter")
                return _HELPERS[name](self._argument(args[0], frames))
            if args:
                raise TemplateError(f"unknown helper {name!r}")
            return _render_value(self._lookup(name, frames))
        if len(node.args) != 1:
            raise TemplateError(f"block {node.name!r} takes one parameter")
        value = self._argument(node.args[0], frames)
        if node.name == "each":
            items = list(value.items()) if isinstance(value, dict) else (
                list(enumerate(value)) if isinstance(value, list) else []
            )
            if not items:
                return self.render(node.inverse, frames)
            last = len(items) - 1
            return "".join(
                self.render(
                    node.body,
                    [*frames, (item, {"key": key, "index": i, "first": i == 0, "last": i == last})],
                )
                for i, (key, item) in enumerate(items)
            )
        if node.name in ("if", "unless"):
            chosen = _truthy(value) == (node.name == "if")
            return self.render(node.body if chosen else node.inverse, frames)
        if node.name == "with":
            if _truthy(value):
                return self.render(node.body, [*frames, (value, {})])
            return self.render(node.inverse, frames)
        raise TemplateError(f"unknown block helper {node.name!r}")

    def _argument(self, token: str, frames: list) -> Any:
        if len(token) >= 2 and token[0] == token[-1] and token[0] in "\"'":
            return token[1:-1]
        if re.fullmatch(r"-?\d+", token):
            return int(token)
        literals = {"true": True, "false": False, "null": None}
        if token in literals:
            return literals[token]
        return self._lookup(token, frames)

    def _lookup(self, path: str, frames: list) -> Any:
        if path == "@root" or path.startswith(("@root.", "@root/")):
            return _walk(self.root, path[5:])
        if path.startswith("@"):
            return frames[-1][1].get(path[1:])
        depth = 0
        while path.startswith("../"):
            depth += 1
            path = path[3:]
        value = frames[max(len(frames) - 1 - depth, 0)][0]
        path = re.sub(r"^(this[./]?|\./)", "", path)
        return value if path in ("", ".") else _walk(value, path)


def render_template(template: str, data: Any) -> str:
    """Render a Handlebars-style template against `data`, without HTML escaping."""
    nodes = _parse(template)
    root = _to_json(data)
    return _Renderer(root).render(nodes, [(root, {})])


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="weight-gen",
        description="Generate weight files from benchmark results.",
        add_help=False,
    )
    parser.add_argument("input", nargs="?", help="benchmark data as JSON; read from stdin if omitted")
    parser.add_argument("-t", "--template", help="path of the template file")
    parser.add_argument("-h", "--header", help="path of a header file")
    parser.add_argument("-o", "--out", help="output path; print to stdout if omitted")
    parser.add_argument("--help", action="help", help="show this help message and exit")
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {VERSION}")
    return parser


def _read(path: str, what: str) -> str:
    try:
        with open(path, encoding="utf-8") as handle:
            return handle.read()
    except OSError as exc:
        raise WeightGenError(f"{what} file not found: {exc}") from exc


def main(argv: list[str] | None = None) -> int:
    """Render benchmark data through a template to a file or stdout."""
    parser = _build_parser()
    opts = parser.parse_args(argv)
    try:
        if opts.input is not None:
            try:
                benchmarks = parse_bench_data(opts.input)
            except ValueError as exc:
                raise WeightGenError(f"Could not parse JSON data: {exc}") from exc
        else:
            benchmarks = parse_lines(sys.stdin.read())
            if benchmarks is None:
                raise WeightGenError("Could not parse JSON data")

        header = _read(opts.header, "Header") if opts.header else ""
        if not opts.template:
            parser.error("a template file is required (--template)")
        template = _read(opts.template, "Template")

        try:
            rendered = render_template(template, {"header": header, "benchmarks": benchmarks})
        except TemplateError as exc:
            raise WeightGenError(f"Unable to render template: {exc}") from exc

        if opts.out:
            try:
                with open(opts.out, "w", encoding="utf-8") as handle:
                    handle.write(rendered)
            except OSError as exc:
                raise WeightGenError(f"Could not create output file: {exc}") from exc
        else:
            print(rendered)
    except WeightGenError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())