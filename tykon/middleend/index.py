"""Global name index: who declares what, and who gets to emit it.

Built once per unit before any emission. Ownership of a name that appears
in several containers cannot be decided until every container has been
seen, so the index is filled completely, frozen, and only then consulted.

Owner rule: the root container if it declares the name, otherwise the first
declaring container in enumeration order (named modules in discovery order,
root last).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from ..model import ClassDecl, Container, Declaration, InterfaceDecl, SourceUnit, TypeAliasDecl

if TYPE_CHECKING:
    from ..backend.names import NameResolver

NameKind = Literal["class", "interface", "alias"]


class NameIndex:
    """Name -> declarations across all containers of one unit."""

    def __init__(self) -> None:
        self.containers: list[Container] = []
        self._entries: dict[NameKind, dict[str, list[tuple[int, Declaration]]]] = {
            "class": {},
            "interface": {},
            "alias": {},
        }
        self._owners: dict[tuple[NameKind, str], int] = {}
        self._frozen = False

    # ---------------------------------------------------------------------------
    # Building
    # ---------------------------------------------------------------------------

    def _check_mutable(self) -> None:
        if self._frozen:
            raise RuntimeError("name index is read-only once built")

    def add_container(self, container: Container) -> int:
        self._check_mutable()
        self.containers.append(container)
        return len(self.containers) - 1

    def add(self, kind: NameKind, container_id: int, name: str, decl: Declaration) -> None:
        self._check_mutable()
        self._entries[kind].setdefault(name, []).append((container_id, decl))

    def freeze(self) -> None:
        """Compute owners and stop accepting entries."""
        self._check_mutable()
        for kind, entries in self._entries.items():
            for name, found in entries.items():
                ids: list[int] = []
                for cid, _ in found:
                    if cid not in ids:
                        ids.append(cid)
                root_ids = [cid for cid in ids if self.containers[cid].is_root]
                self._owners[(kind, name)] = root_ids[0] if root_ids else ids[0]
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ---------------------------------------------------------------------------
    # Queries
    # ---------------------------------------------------------------------------

    def container_id(self, container: Container) -> int:
        for i, c in enumerate(self.containers):
            if c is container:
                return i
        raise KeyError("container not indexed: " + repr(container.name))

    def is_class(self, name: str) -> bool:
        return name in self._entries["class"]

    def classes_for(self, name: str) -> list[ClassDecl]:
        return [d for _, d in self._entries["class"].get(name, []) if isinstance(d, ClassDecl)]

    def interfaces_for(self, name: str) -> list[InterfaceDecl]:
        """Every interface of that name, in enumeration order."""
        return [
            d for _, d in self._entries["interface"].get(name, []) if isinstance(d, InterfaceDecl)
        ]

    def aliases_for(self, name: str) -> list[TypeAliasDecl]:
        return [d for _, d in self._entries["alias"].get(name, []) if isinstance(d, TypeAliasDecl)]

    def declarations_of(self, name: str) -> list[ClassDecl | InterfaceDecl]:
        """Class-like declarations of a type name: classes first, then interfaces."""
        result: list[ClassDecl | InterfaceDecl] = []
        result.extend(self.classes_for(name))
        result.extend(self.interfaces_for(name))
        return result

    def owner_of(self, name: str, kind: NameKind = "interface") -> int | None:
        """Id of the only container allowed to emit name, or None if unknown."""
        return self._owners.get((kind, name))

    def is_owner(self, container: Container, name: str, kind: NameKind = "interface") -> bool:
        owner = self.owner_of(name, kind)
        if owner is None:
            return True
        return self.containers[owner] is container

    def names(self, kind: NameKind) -> list[str]:
        return list(self._entries[kind])


def build_index(unit: SourceUnit, names: NameResolver) -> NameIndex:
    """Index every ambient class, interface and type alias of the unit."""
    index = NameIndex()
    for container in unit.containers():
        cid = index.add_container(container)
        for cls in container.classes:
            if cls.ambient:
                index.add("class", cid, names.resolve_declaration(cls), cls)
        for iface in container.interfaces:
            if iface.ambient:
                index.add("interface", cid, names.resolve_declaration(iface), iface)
        for alias in container.aliases:
            if alias.ambient:
                index.add("alias", cid, names.resolve_declaration(alias), alias)
    index.freeze()
    return index
