"""TypeScript declarations -> declaration model.

Syntax is handled by tree-sitter with the tree-sitter-typescript grammar.
This module walks the concrete syntax tree and builds the tagged model in
tykon.model; it never looks at types beyond their syntax.
"""

from __future__ import annotations

import logging
from pathlib import Path

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from ..errors import ParseError
from ..model import (
    ArrayType,
    ClassDecl,
    Conditional,
    Constructor,
    Container,
    Declaration,
    Doc,
    FunctionDecl,
    FunctionType,
    Generic,
    IndexedAccess,
    InterfaceDecl,
    Intersection,
    Literal,
    Method,
    Named,
    ObjectShape,
    Opaque,
    Parameter,
    Primitive,
    Property,
    SourceUnit,
    Tuple,
    TypeAliasDecl,
    TypeExpr,
    TypeOperator,
    TypeParam,
    Union,
    VariableDecl,
)
from .docs import is_jsdoc, parse_jsdoc

logger = logging.getLogger(__name__)

TS_LANGUAGE = Language(tree_sitter_typescript.language_typescript())

_parser: Parser | None = None

PRIMITIVE_NAMES = frozenset(
    {
        "string",
        "number",
        "boolean",
        "bigint",
        "symbol",
        "any",
        "unknown",
        "object",
        "void",
        "undefined",
        "null",
        "never",
    }
)

# Declaration-file suffixes: everything inside is ambient
DECLARATION_SUFFIXES = (".d.ts", ".d.mts", ".d.cts")

_TYPE_ANNOTATIONS = frozenset(
    {
        "type_annotation",
        "opting_type_annotation",
        "omitting_type_annotation",
        "adding_type_annotation",
    }
)

_TUPLE_MEMBER_WRAPPERS = frozenset(
    {
        "tuple_parameter",
        "optional_tuple_parameter",
        "required_parameter",
        "optional_parameter",
    }
)


def get_parser() -> Parser:
    """Shared parser for the TypeScript grammar."""
    global _parser
    if _parser is None:
        _parser = Parser(TS_LANGUAGE)
    return _parser


def _first_error(node: Node) -> Node | None:
    """Depth-first search for the first ERROR or MISSING node."""
    if node.type == "ERROR" or node.is_missing:
        return node
    if not node.has_error:
        return None
    for child in node.children:
        found = _first_error(child)
        if found is not None:
            return found
    return node


def _check_syntax(root: Node, name: str, tolerant: bool) -> None:
    if not root.has_error:
        return
    bad = _first_error(root) or root
    row, col = bad.start_point
    if bad.is_missing:
        msg = "missing '" + bad.type + "'"
    else:
        msg = "syntax error"
    if tolerant:
        logger.warning("%s:%d:%d: %s (skipped)", name, row + 1, col, msg)
        return
    raise ParseError(msg, row + 1, col)


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"`":
        return text[1:-1]
    return text


def _has_token(node: Node, keyword: str) -> bool:
    """True if an anonymous child token equals keyword (static, readonly, ?)."""
    for child in node.children:
        if not child.is_named and child.type == keyword:
            return True
    return False


def _first_named(node: Node, types: frozenset[str] | tuple[str, ...]) -> Node | None:
    for child in node.named_children:
        if child.type in types:
            return child
    return None


class _Builder:
    """Walk one syntax tree into a SourceUnit."""

    def __init__(self, src: bytes, unit: SourceUnit, declaration_file: bool) -> None:
        self.src = src
        self.unit = unit
        self.declaration_file = declaration_file
        self.es_module = False

    def text(self, node: Node) -> str:
        return self.src[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    # ---------------------------------------------------------------------------
    # Statements
    # ---------------------------------------------------------------------------

    def build(self, root: Node) -> None:
        for child in root.named_children:
            if child.type in ("import_statement", "export_statement"):
                self.es_module = True
                break
        self.statements(root, self.unit.root, ambient=False, in_module=False)

    def statements(self, parent: Node, container: Container, ambient: bool, in_module: bool) -> None:
        for child in parent.named_children:
            self.statement(child, child, container, ambient, False, in_module)

    def statement(
        self,
        node: Node,
        outer: Node,
        container: Container,
        ambient: bool,
        exported: bool,
        in_module: bool,
    ) -> None:
        t = node.type
        if t == "export_statement":
            decl = node.child_by_field_name("declaration")
            if decl is not None and not _has_token(node, "default"):
                self.statement(decl, outer, container, ambient, True, in_module)
        elif t == "ambient_declaration":
            if _has_token(node, "global"):
                body = _first_named(node, ("statement_block",))
                if body is not None:
                    self.statements(body, self.unit.root, True, True)
                return
            for child in node.named_children:
                self.statement(child, outer, container, True, exported, in_module)
        elif t == "expression_statement":
            inner = _first_named(node, ("internal_module",))
            if inner is not None:
                self.statement(inner, outer, container, ambient, exported, in_module)
        elif t in ("internal_module", "module"):
            self.namespace(node, container, ambient)
        elif t in ("class_declaration", "abstract_class_declaration", "class"):
            self.add(container, self.class_decl(node, outer), ambient, exported)
        elif t == "interface_declaration":
            self.add(container, self.interface_decl(node, outer), ambient, exported)
        elif t == "type_alias_declaration":
            self.add(container, self.alias_decl(node, outer), ambient, exported)
        elif t in ("function_signature", "function_declaration"):
            self.add(container, self.function_decl(node, outer), ambient, exported)
        elif t in ("lexical_declaration", "variable_declaration"):
            for decl in self.variable_decls(node, outer):
                decl.local = self.es_module and not exported and not in_module
                self.add(container, decl, ambient, exported)
        elif t != "comment":
            logger.debug("skipping %s at line %d", t, node.start_point[0] + 1)

    def add(self, container: Container, decl: Declaration | None, ambient: bool, exported: bool) -> None:
        if decl is None:
            return
        decl.ambient = ambient or self.declaration_file
        decl.exported = exported
        container.add(decl)

    def namespace(self, node: Node, container: Container, ambient: bool) -> None:
        name_node = node.child_by_field_name("name")
        body = node.child_by_field_name("body")
        if name_node is None or body is None:
            return
        if name_node.type == "string":
            name = _unquote(self.text(name_node))
            target = self.unit.module(name, "module", js_module=name)
            ambient = True
        else:
            name = "".join(self.text(name_node).split())
            if container.kind == "namespace":
                name = container.name + "." + name
            target = self.unit.module(name, "namespace", js_module=container.js_module)
        self.statements(body, target, ambient, True)

    # ---------------------------------------------------------------------------
    # Declarations
    # ---------------------------------------------------------------------------

    def docs(self, node: Node) -> list[Doc]:
        """JSDoc blocks directly preceding node, in source order."""
        found: list[Doc] = []
        prev = node.prev_sibling
        while prev is not None and prev.type == "comment":
            text = self.text(prev)
            if is_jsdoc(text):
                found.append(parse_jsdoc(text))
            prev = prev.prev_sibling
        found.reverse()
        return found

    def name_of(self, node: Node) -> str:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return ""
        return self.text(name_node)

    def class_decl(self, node: Node, outer: Node) -> ClassDecl:
        decl = ClassDecl(
            name=self.name_of(node),
            docs=self.docs(outer),
            type_params=self.type_params(node.child_by_field_name("type_parameters")),
            abstract=node.type == "abstract_class_declaration",
            lineno=node.start_point[0] + 1,
        )
        heritage = _first_named(node, ("class_heritage",))
        if heritage is not None:
            for clause in heritage.named_children:
                if clause.type == "extends_clause":
                    decl.parent = self.extends_type(clause)
                elif clause.type == "implements_clause":
                    decl.implements = [self.type(t) for t in clause.named_children]
        body = node.child_by_field_name("body")
        if body is not None:
            self.members(body, decl.properties, decl.methods, decl.constructors)
        return decl

    def extends_type(self, clause: Node) -> TypeExpr | None:
        value = clause.child_by_field_name("value")
        if value is None:
            value = clause.named_children[0] if clause.named_children else None
        if value is None:
            return None
        args_node = clause.child_by_field_name("type_arguments")
        base = "".join(self.text(value).split())
        if args_node is None:
            return Named(base, text=base)
        args = tuple(self.type(a) for a in args_node.named_children)
        text = self.src[value.start_byte : args_node.end_byte].decode("utf-8", errors="replace")
        return Generic(base, args, text=text)

    def interface_decl(self, node: Node, outer: Node) -> InterfaceDecl:
        decl = InterfaceDecl(
            name=self.name_of(node),
            docs=self.docs(outer),
            type_params=self.type_params(node.child_by_field_name("type_parameters")),
            lineno=node.start_point[0] + 1,
        )
        clause = _first_named(node, ("extends_type_clause",))
        if clause is not None:
            decl.extends = [self.type(t) for t in clause.named_children]
        body = node.child_by_field_name("body")
        if body is not None:
            self.members(body, decl.properties, decl.methods, None)
        return decl

    def alias_decl(self, node: Node, outer: Node) -> TypeAliasDecl | None:
        value = node.child_by_field_name("value")
        if value is None:
            return None
        return TypeAliasDecl(
            name=self.name_of(node),
            docs=self.docs(outer),
            type_params=self.type_params(node.child_by_field_name("type_parameters")),
            type=self.type(value),
            lineno=node.start_point[0] + 1,
        )

    def function_decl(self, node: Node, outer: Node) -> FunctionDecl:
        return FunctionDecl(
            name=self.name_of(node),
            docs=self.docs(outer),
            type_params=self.type_params(node.child_by_field_name("type_parameters")),
            params=self.params(node.child_by_field_name("parameters")),
            return_type=self.annotation(node.child_by_field_name("return_type")),
            lineno=node.start_point[0] + 1,
        )

    def variable_decls(self, node: Node, outer: Node) -> list[VariableDecl]:
        kind = node.children[0].type if node.children else "var"
        docs = self.docs(outer)
        result: list[VariableDecl] = []
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            name_node = declarator.child_by_field_name("name")
            if name_node is None or name_node.type != "identifier":
                continue
            result.append(
                VariableDecl(
                    name=self.text(name_node),
                    docs=docs,
                    type=self.annotation(declarator.child_by_field_name("type")),
                    readonly=kind == "const",
                    lineno=declarator.start_point[0] + 1,
                )
            )
        return result

    # ---------------------------------------------------------------------------
    # Members
    # ---------------------------------------------------------------------------

    def members(
        self,
        body: Node,
        properties: list[Property],
        methods: list[Method],
        constructors: list[Constructor] | None,
    ) -> None:
        accessors: dict[tuple[str, bool], Property] = {}
        for member in body.named_children:
            t = member.type
            if t not in (
                "public_field_definition",
                "property_signature",
                "method_signature",
                "abstract_method_signature",
                "method_definition",
            ):
                continue
            access = _first_named(member, ("accessibility_modifier",))
            if access is not None and self.text(access) == "private":
                continue
            name = self.member_name(member)
            static = _has_token(member, "static")
            docs = self.docs(member)
            if t in ("public_field_definition", "property_signature"):
                properties.append(
                    Property(
                        name=name,
                        type=self.annotation(member.child_by_field_name("type")),
                        optional=_has_token(member, "?"),
                        readonly=_has_token(member, "readonly"),
                        static=static,
                        abstract=_has_token(member, "abstract"),
                        docs=docs,
                    )
                )
                continue
            params = self.params(member.child_by_field_name("parameters"))
            ret = self.annotation(member.child_by_field_name("return_type"))
            if _has_token(member, "get") or _has_token(member, "set"):
                key = (name, static)
                prop = accessors.get(key)
                if prop is None:
                    prop = Property(name=name, readonly=True, static=static, docs=docs)
                    accessors[key] = prop
                    properties.append(prop)
                if _has_token(member, "set"):
                    prop.readonly = False
                    if prop.type is None and params:
                        prop.type = params[0].type
                elif ret is not None:
                    prop.type = ret
                continue
            if name == "constructor" and not static and constructors is not None:
                constructors.append(Constructor(params=params, docs=docs))
                continue
            methods.append(
                Method(
                    name=name,
                    params=params,
                    return_type=ret,
                    type_params=self.type_params(member.child_by_field_name("type_parameters")),
                    optional=_has_token(member, "?"),
                    static=static,
                    abstract=t == "abstract_method_signature" or _has_token(member, "abstract"),
                    docs=docs,
                )
            )

    def member_name(self, member: Node) -> str:
        name_node = member.child_by_field_name("name")
        if name_node is None:
            return ""
        text = self.text(name_node)
        if name_node.type == "computed_property_name":
            return "[" + text[1:-1].strip() + "]"
        return text

    def params(self, node: Node | None) -> list[Parameter]:
        if node is None:
            return []
        result: list[Parameter] = []
        for p in node.named_children:
            if p.type not in ("required_parameter", "optional_parameter"):
                continue
            pattern = p.child_by_field_name("pattern")
            rest = False
            if pattern is None:
                name = "arg" + str(len(result))
            elif pattern.type == "rest_pattern":
                rest = True
                inner = pattern.named_children[0] if pattern.named_children else None
                name = self.text(inner) if inner is not None and inner.type == "identifier" else "args"
            elif pattern.type in ("identifier", "this"):
                name = self.text(pattern)
            else:
                name = "arg" + str(len(result))
            result.append(
                Parameter(
                    name=name,
                    type=self.annotation(p.child_by_field_name("type")),
                    optional=p.type == "optional_parameter" or p.child_by_field_name("value") is not None,
                    rest=rest,
                )
            )
        return result

    def type_params(self, node: Node | None) -> list[TypeParam]:
        if node is None:
            return []
        result: list[TypeParam] = []
        for tp in node.named_children:
            if tp.type != "type_parameter":
                continue
            constraint = tp.child_by_field_name("constraint")
            default = tp.child_by_field_name("value")
            result.append(
                TypeParam(
                    name=self.name_of(tp),
                    constraint=self.wrapped_type(constraint),
                    default=self.wrapped_type(default),
                )
            )
        return result

    def wrapped_type(self, node: Node | None) -> TypeExpr | None:
        """Type inside `extends X` / `= X` wrapper nodes."""
        if node is None:
            return None
        if node.named_children:
            return self.type(node.named_children[-1])
        return None

    def annotation(self, node: Node | None) -> TypeExpr | None:
        if node is None:
            return None
        if node.type in _TYPE_ANNOTATIONS:
            if not node.named_children:
                return None
            return self.type(node.named_children[0])
        if node.type == "type_predicate_annotation":
            return Primitive("boolean", text=self.text(node).lstrip(":").strip())
        if node.type == "asserts_annotation":
            return Primitive("void", text=self.text(node).lstrip(":").strip())
        return self.type(node)

    # ---------------------------------------------------------------------------
    # Types
    # ---------------------------------------------------------------------------

    def type(self, node: Node) -> TypeExpr:
        text = self.text(node)
        t = node.type
        kids = node.named_children
        if t == "predefined_type":
            if text in PRIMITIVE_NAMES:
                return Primitive(text, text=text)  # type: ignore[arg-type]
            if text.startswith("unique"):
                return TypeOperator("unique", Primitive("symbol", text="symbol"), text=text)
            return Named(text, text=text)
        if t == "type_identifier":
            if text in PRIMITIVE_NAMES:
                return Primitive(text, text=text)  # type: ignore[arg-type]
            return Named(text, text=text)
        if t in ("undefined", "null"):
            return Primitive(t, text=text)
        if t == "this_type" or t == "this":
            return Primitive("this", text=text)
        if t == "nested_type_identifier":
            return Named("".join(text.split()), text=text)
        if t == "generic_type":
            base = node.child_by_field_name("name")
            args_node = node.child_by_field_name("type_arguments")
            args = tuple(self.type(a) for a in args_node.named_children) if args_node else ()
            base_text = "".join(self.text(base).split()) if base is not None else text
            return Generic(base_text, args, text=text)
        if t == "array_type" and kids:
            return ArrayType(self.type(kids[0]), text=text)
        if t == "readonly_type" and kids:
            return TypeOperator("readonly", self.type(kids[0]), text=text)
        if t == "tuple_type":
            return Tuple(tuple(self.tuple_member(k) for k in kids), text=text)
        if t == "union_type":
            return Union(tuple(self.flatten(node, "union_type")), text=text)
        if t == "intersection_type":
            return Intersection(tuple(self.flatten(node, "intersection_type")), text=text)
        if t == "parenthesized_type" and kids:
            return self.type(kids[0])
        if t == "function_type":
            return self.function_type(node, text)
        if t == "constructor_type":
            return TypeOperator("new", self.function_type(node, text), text=text)
        if t == "conditional_type":
            return self.conditional(node, text)
        if t == "lookup_type" and len(kids) >= 2:
            return IndexedAccess(self.type(kids[0]), self.type(kids[1]), text=text)
        if t == "index_type_query" and kids:
            return TypeOperator("keyof", self.type(kids[0]), text=text)
        if t == "type_query":
            operand = text[len("typeof") :].strip() if text.startswith("typeof") else text
            return TypeOperator("typeof", Named(operand, text=operand), text=text)
        if t == "literal_type" and kids:
            return self.literal(kids[0], text)
        if t in ("template_literal_type", "template_type"):
            return Literal("template", text.strip("`"), text=text)
        if t == "object_type":
            return self.object_shape(node, text)
        if t == "type_predicate":
            return Primitive("boolean", text=text)
        if t in ("optional_type", "rest_type") and kids:
            return self.type(kids[0])
        return Opaque(text)

    def tuple_member(self, node: Node) -> TypeExpr:
        if node.type in _TUPLE_MEMBER_WRAPPERS:
            inner = node.child_by_field_name("type")
            if inner is not None:
                annotated = self.annotation(inner)
                if annotated is not None:
                    return annotated
            return Opaque(self.text(node))
        return self.type(node)

    def flatten(self, node: Node, kind: str) -> list[TypeExpr]:
        result: list[TypeExpr] = []
        for child in node.named_children:
            if child.type == kind:
                result.extend(self.flatten(child, kind))
            else:
                result.append(self.type(child))
        return result

    def function_type(self, node: Node, text: str) -> FunctionType:
        params_node = node.child_by_field_name("parameters") or _first_named(node, ("formal_parameters",))
        ret_node = node.child_by_field_name("return_type")
        ret = self.annotation(ret_node) if ret_node is not None else None
        return FunctionType(
            tuple(self.params(params_node)),
            ret if ret is not None else Primitive("any", text="any"),
            text=text,
        )

    def conditional(self, node: Node, text: str) -> TypeExpr:
        parts = [node.child_by_field_name(f) for f in ("left", "right", "consequence", "alternative")]
        if any(p is None for p in parts):
            return Opaque(text)
        check, extends, when_true, when_false = (self.type(p) for p in parts)  # type: ignore[arg-type]
        return Conditional(check, extends, when_true, when_false, text=text)

    def literal(self, node: Node, text: str) -> TypeExpr:
        t = node.type
        if t == "string":
            return Literal("string", _unquote(self.text(node)), text=text)
        if t in ("number", "unary_expression"):
            return Literal("number", self.text(node), text=text)
        if t in ("true", "false"):
            return Literal("boolean", t, text=text)
        if t in ("null", "undefined"):
            return Primitive(t, text=text)
        return Opaque(text)

    def object_shape(self, node: Node, text: str) -> TypeExpr:
        for member in node.named_children:
            if member.type == "index_signature" and _first_named(member, ("mapped_type_clause",)):
                return Opaque(text)
        properties: list[Property] = []
        methods: list[Method] = []
        self.members(node, properties, methods, None)
        return ObjectShape(tuple(properties), tuple(methods), text=text)


def parse_source(source: str, name: str = "index.d.ts", tolerant: bool = False) -> SourceUnit:
    """Parse TypeScript source into a SourceUnit.

    Declaration files (`.d.ts`) make every declaration ambient; elsewhere only
    `declare` and ambient module bodies do. Raises ParseError on syntax errors
    unless tolerant, which logs them and keeps what parsed.
    """
    src = source.encode("utf-8")
    tree = get_parser().parse(src)
    _check_syntax(tree.root_node, name, tolerant)
    unit = SourceUnit(name=name)
    builder = _Builder(src, unit, name.endswith(DECLARATION_SUFFIXES))
    builder.build(tree.root_node)
    logger.debug(
        "parsed %s: %d declarations in %d containers",
        name,
        sum(len(c.declarations()) for c in unit.containers()),
        len(unit.containers()),
    )
    return unit


def parse_file(path: str | Path, tolerant: bool = False) -> SourceUnit:
    """Read and parse one file; the unit is named after the file."""
    p = Path(path)
    return parse_source(p.read_text(encoding="utf-8"), p.name, tolerant)


def parse_type(text: str) -> TypeExpr:
    """Parse a standalone type expression."""
    src = ("type __T = " + text + ";").encode("utf-8")
    tree = get_parser().parse(src)
    _check_syntax(tree.root_node, "<type>", False)
    alias = _first_named(tree.root_node, ("type_alias_declaration",))
    if alias is None:
        raise ParseError("not a type: " + text, 1, 0)
    value = alias.child_by_field_name("value")
    if value is None:
        raise ParseError("not a type: " + text, 1, 0)
    return _Builder(src, SourceUnit(name="<type>"), True).type(value)
