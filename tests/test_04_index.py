"""Pytest-based name index and configuration tests."""

import json

import pytest

from tykon.backend.names import NameResolver
from tykon.config import Config, load_config
from tykon.errors import ConfigError
from tykon.middleend.constants import ConstantTable
from tykon.middleend.index import NameIndex, build_index
from tykon.model import ClassDecl, Container, InterfaceDecl, Named, SourceUnit, TypeAliasDecl


def make_unit() -> SourceUnit:
    unit = SourceUnit(name="lib.d.ts")
    first = unit.module("first", "module", js_module="first")
    second = unit.module("second", "module", js_module="second")
    first.add(InterfaceDecl(name="Shared"))
    second.add(InterfaceDecl(name="Shared"))
    second.add(InterfaceDecl(name="Everywhere"))
    unit.root.add(InterfaceDecl(name="Everywhere"))
    unit.root.add(ClassDecl(name="Thing"))
    unit.root.add(TypeAliasDecl(name="Id", type=Named("string")))
    unit.root.add(InterfaceDecl(name="Skipped", ambient=False))
    return unit


def index_of(unit: SourceUnit) -> NameIndex:
    return build_index(unit, NameResolver(ConstantTable()))


def test_owner_is_root_when_present() -> None:
    unit = make_unit()
    index = index_of(unit)
    assert index.is_owner(unit.root, "Everywhere")
    assert not index.is_owner(unit.modules[1], "Everywhere")


def test_owner_is_first_container_otherwise() -> None:
    unit = make_unit()
    index = index_of(unit)
    assert index.owner_of("Shared") == index.container_id(unit.modules[0])
    assert index.is_owner(unit.modules[0], "Shared")
    assert not index.is_owner(unit.modules[1], "Shared")


def test_unknown_names_are_unowned() -> None:
    unit = make_unit()
    index = index_of(unit)
    assert index.owner_of("Missing") is None
    assert index.is_owner(unit.root, "Missing")


def test_alias_and_class_owners() -> None:
    unit = SourceUnit(name="lib.d.ts")
    a = unit.module("a", "module", js_module="a")
    b = unit.module("b", "module", js_module="b")
    a.add(TypeAliasDecl(name="Id", type=Named("string")))
    b.add(TypeAliasDecl(name="Id", type=Named("number")))
    b.add(ClassDecl(name="Shape"))
    unit.root.add(ClassDecl(name="Shape"))
    index = index_of(unit)
    assert index.owner_of("Id", "alias") == index.container_id(a)
    assert not index.is_owner(b, "Id", "alias")
    assert index.owner_of("Shape", "class") == index.container_id(unit.root)
    assert index.owner_of("Id") is None


def test_lookups() -> None:
    index = index_of(make_unit())
    assert index.is_class("Thing")
    assert not index.is_class("Shared")
    assert len(index.interfaces_for("Shared")) == 2
    assert [a.name for a in index.aliases_for("Id")] == ["Id"]
    assert index.interfaces_for("Skipped") == []
    assert sorted(index.names("interface")) == ["Everywhere", "Shared"]


def test_declarations_of_lists_classes_first() -> None:
    unit = SourceUnit(name="x.d.ts")
    unit.root.add(InterfaceDecl(name="Node"))
    unit.root.add(ClassDecl(name="Node"))
    found = index_of(unit).declarations_of("Node")
    assert [type(d) for d in found] == [ClassDecl, InterfaceDecl]


def test_index_is_read_only_after_build() -> None:
    index = index_of(make_unit())
    assert index.frozen
    with pytest.raises(RuntimeError):
        index.add("interface", 0, "Late", InterfaceDecl(name="Late"))
    with pytest.raises(RuntimeError):
        index.add_container(Container())


def test_constant_table() -> None:
    table = ConstantTable()
    table.record_literal("click")
    table.record("EVENT", "message")
    assert table.resolve('"click"') == "click"
    assert "EVENT" in table
    assert "Events.EVENT" in table
    assert len(table) == 2
    table.clear()
    assert table.resolve("EVENT") is None


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def test_config_defaults() -> None:
    config = Config(package="com.example")
    assert config.new_line == "\n"
    assert config.indent_unit() == "    "
    assert config.module is None


def test_config_tabs_win() -> None:
    assert Config(package="a", spaces=2, tabs=1).indent_unit() == "\t"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"package": ""},
        {"package": "com.1bad"},
        {"package": "com.example", "new_line": "\r"},
        {"package": "com.example", "spaces": -1},
    ],
)
def test_config_validation(kwargs: dict) -> None:
    with pytest.raises(ConfigError):
        Config(**kwargs)


def test_config_from_dict_accepts_camel_case() -> None:
    config = Config.from_dict({"package": "com.example", "newLine": "\r\n", "imports": ["kotlin.js.Promise"]})
    assert config.new_line == "\r\n"
    assert config.imports == ["kotlin.js.Promise"]
    assert Config.from_dict(config.to_dict()) == config


@pytest.mark.parametrize(
    "data",
    [
        {"module": "x"},
        {"package": "a", "colour": "blue"},
        {"package": "a", "imports": "kotlin.js.Promise"},
        {"package": "a", "spaces": "4"},
    ],
)
def test_config_from_dict_rejects(data: dict) -> None:
    with pytest.raises(ConfigError):
        Config.from_dict(data)


def test_load_config(tmp_path) -> None:
    path = tmp_path / "tykon.json"
    path.write_text(json.dumps({"package": "com.example", "module": "lib", "spaces": 2}))
    config = load_config(path)
    assert config.module == "lib"
    assert config.spaces == 2


def test_load_config_errors(tmp_path) -> None:
    with pytest.raises(ConfigError):
        load_config(tmp_path / "missing.json")
    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    with pytest.raises(ConfigError):
        load_config(bad)
    listed = tmp_path / "list.json"
    listed.write_text("[]")
    with pytest.raises(ConfigError):
        load_config(listed)
