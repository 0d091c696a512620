"""
Source-level inspection of enforcement code.

Extracts, from the AST of a handler method, the evidence the contract
verifier compares with the declared registry:
- enforcement calls (_require_privilege, _require_owner_or_privilege,
  _require_admin) with their literal kind, privilege and id source
- lookup calls (_resolve, get_by_name) and the variables they assign
- raw decision calls (has_privilege, check) and denial audit calls
- the operation id passed to @audited

Handlers are read from source, never imported and executed for inspection,
so verification has no runtime side effects.
"""

from __future__ import annotations

import ast
import functools
import importlib.util
import logging
import pkgutil
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set, Tuple, Type, TypeVar, Union

from brickgate.models import AuthzMode, PrivilegeType, SecurableIdSource, SecurableKind

logger = logging.getLogger(__name__)

ENFORCEMENT_CALLS: Dict[str, AuthzMode] = {
    "_require_privilege": AuthzMode.PRIVILEGE,
    "_require_owner_or_privilege": AuthzMode.OWNER_OR_PRIVILEGE,
    "_require_admin": AuthzMode.ADMIN_ONLY,
}
LOOKUP_CALLS: Set[str] = {"_resolve", "get_by_name"}
RAW_DECISION_CALLS: Set[str] = {"has_privilege", "check"}
DENIAL_AUDIT_CALLS: Set[str] = {"log_denial"}
SENTINEL_CALLS: Set[str] = {"catalog_sentinel", "_catalog_sentinel"}
AUDIT_DECORATOR = "audited"

FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]
E = TypeVar("E", SecurableKind, PrivilegeType)


@dataclass
class EnforcementCall:
    """One _require_* call found in a handler."""

    mode: AuthzMode
    lineno: int
    securable_type: Optional[SecurableKind] = None
    privilege: Optional[PrivilegeType] = None
    id_source: Optional[SecurableIdSource] = None
    # Variable whose .id is checked, for runtime-resolved ids
    id_variable: Optional[str] = None

    @property
    def check_key(self) -> Tuple[Optional[SecurableKind], Optional[PrivilegeType], Optional[SecurableIdSource]]:
        return (self.securable_type, self.privilege, self.id_source)

    def describe(self) -> str:
        if self.mode == AuthzMode.ADMIN_ONLY:
            return f"admin check (line {self.lineno})"
        kind = self.securable_type.value if self.securable_type else "?"
        priv = self.privilege.value if self.privilege else "?"
        source = self.id_source.value if self.id_source else "?"
        return f"{kind}/{priv}/{source} (line {self.lineno})"


@dataclass
class LookupCall:
    """One lookup call found in a handler."""

    function: str
    lineno: int
    target: Optional[str] = None


@dataclass
class HandlerInspection:
    """Everything extracted from one handler's source."""

    handler: str
    found: bool = False
    error: str = ""
    params: List[str] = field(default_factory=list)
    enforcement: List[EnforcementCall] = field(default_factory=list)
    lookups: List[LookupCall] = field(default_factory=list)
    raw_decisions: List[int] = field(default_factory=list)
    denial_audits: List[int] = field(default_factory=list)
    audited_operation: Optional[str] = None
    is_audited: bool = False

    def lookup_line(self, variable: str) -> Optional[int]:
        """Line of the first lookup assigning a variable, if any."""
        lines = [lookup.lineno for lookup in self.lookups if lookup.target == variable]
        return min(lines) if lines else None


# =============================================================================
# SOURCE ACCESS
# =============================================================================

@functools.lru_cache(maxsize=None)
def parse_source(path: str) -> ast.Module:
    with open(path, "r", encoding="utf-8") as f:
        return ast.parse(f.read(), filename=path)


def clear_cache() -> None:
    """Forget parsed sources (for tools that rewrite files between runs)."""
    parse_source.cache_clear()


def module_source_path(module: str) -> str:
    """
    Path of a module's source file.

    Raises:
        ModuleNotFoundError: If the module cannot be located or has no Python source
    """
    spec = importlib.util.find_spec(module)
    if spec is None or not spec.origin or not spec.origin.endswith(".py"):
        raise ModuleNotFoundError(f"No Python source for module '{module}'")
    return spec.origin


def iter_modules(package: str) -> Iterator[Tuple[str, str]]:
    """Yield (module name, source path) for a module or every module of a package."""
    spec = importlib.util.find_spec(package)
    if spec is None:
        raise ModuleNotFoundError(f"No module named '{package}'")
    if spec.origin and spec.origin.endswith(".py"):
        yield package, spec.origin
    if not spec.submodule_search_locations:
        return
    for info in pkgutil.walk_packages(spec.submodule_search_locations, prefix=f"{package}."):
        try:
            yield info.name, module_source_path(info.name)
        except ModuleNotFoundError:
            logger.debug(f"Skipping {info.name}: no Python source")


def iter_class_methods(tree: ast.Module) -> Iterator[Tuple[ast.ClassDef, FunctionNode]]:
    """Yield (class, method) pairs for the top-level classes of a module."""
    for node in tree.body:
        if not isinstance(node, ast.ClassDef):
            continue
        for item in node.body:
            if isinstance(item, (ast.FunctionDef, ast.AsyncFunctionDef)):
                yield node, item


def find_method(module: str, class_name: str, method_name: str) -> FunctionNode:
    """
    Locate a method definition in a module's source.

    Raises:
        ModuleNotFoundError: If the module has no source
        LookupError: If the class or method does not exist
    """
    tree = parse_source(module_source_path(module))
    found_class = False
    for cls, method in iter_class_methods(tree):
        if cls.name != class_name:
            continue
        found_class = True
        if method.name == method_name:
            return method
    if not found_class:
        raise LookupError(f"Class {class_name} not found in {module}")
    raise LookupError(f"Method {class_name}.{method_name} not found in {module}")


# =============================================================================
# AST HELPERS
# =============================================================================

def call_name(node: ast.Call) -> Optional[str]:
    """Name of the called function or method: 'x' for x(...) and obj.x(...)."""
    func = node.func
    if isinstance(func, ast.Attribute):
        return func.attr
    if isinstance(func, ast.Name):
        return func.id
    return None


def audited_operation(func: FunctionNode) -> Tuple[bool, Optional[str]]:
    """
    Read the @audited decorator of a method.

    Returns:
        (decorated, operation id); the id is None when it is not a string literal
    """
    for decorator in func.decorator_list:
        if isinstance(decorator, ast.Call) and call_name(decorator) == AUDIT_DECORATOR:
            if decorator.args and isinstance(decorator.args[0], ast.Constant) and isinstance(decorator.args[0].value, str):
                return True, decorator.args[0].value
            return True, None
        if isinstance(decorator, (ast.Name, ast.Attribute)):
            name = decorator.id if isinstance(decorator, ast.Name) else decorator.attr
            if name == AUDIT_DECORATOR:
                return True, None
    return False, None


def parameter_names(func: FunctionNode) -> List[str]:
    args = func.args
    return [a.arg for a in args.posonlyargs + args.args + args.kwonlyargs]


def _argument(call: ast.Call, index: int, keyword: str) -> Optional[ast.expr]:
    for kw in call.keywords:
        if kw.arg == keyword:
            return kw.value
    if len(call.args) > index:
        return call.args[index]
    return None


def _enum_literal(node: Optional[ast.expr], enum_cls: Type[E]) -> Optional[E]:
    """Member for a literal like SecurableKind.TABLE, None for anything computed."""
    if not isinstance(node, ast.Attribute) or node.attr not in enum_cls.__members__:
        return None
    base = node.value
    base_name = base.attr if isinstance(base, ast.Attribute) else getattr(base, "id", None)
    if base_name != enum_cls.__name__:
        return None
    return enum_cls[node.attr]


def _classify_id(node: Optional[ast.expr], params: List[str]) -> Tuple[Optional[SecurableIdSource], Optional[str]]:
    if isinstance(node, ast.Call) and call_name(node) in SENTINEL_CALLS:
        return SecurableIdSource.CATALOG_SENTINEL, None
    if isinstance(node, ast.Name) and node.id in params:
        return SecurableIdSource.CATALOG_NAME_PARAM, None
    if isinstance(node, ast.Attribute) and node.attr == "id" and isinstance(node.value, ast.Name):
        return SecurableIdSource.RUNTIME_RESOLVED_OBJECT_ID, node.value.id
    return None, None


# =============================================================================
# INSPECTION
# =============================================================================

def inspect_function(func: FunctionNode, handler: str = "") -> HandlerInspection:
    """Extract enforcement evidence from a parsed method."""
    result = HandlerInspection(handler=handler or func.name, found=True)
    result.params = parameter_names(func)
    result.is_audited, result.audited_operation = audited_operation(func)

    assigned: Dict[int, str] = {}
    for node in ast.walk(func):
        if isinstance(node, ast.Assign) and isinstance(node.value, ast.Call):
            names = [t.id for t in node.targets if isinstance(t, ast.Name)]
            if names:
                assigned[id(node.value)] = names[0]
        elif isinstance(node, (ast.AnnAssign, ast.NamedExpr)) and isinstance(node.value, ast.Call):
            if isinstance(node.target, ast.Name):
                assigned[id(node.value)] = node.target.id

    for node in ast.walk(func):
        if not isinstance(node, ast.Call):
            continue
        name = call_name(node)
        if name in ENFORCEMENT_CALLS:
            call = EnforcementCall(mode=ENFORCEMENT_CALLS[name], lineno=node.lineno)
            if call.mode != AuthzMode.ADMIN_ONLY:
                call.securable_type = _enum_literal(_argument(node, 1, "kind"), SecurableKind)
                call.privilege = _enum_literal(_argument(node, 3, "privilege"), PrivilegeType)
                call.id_source, call.id_variable = _classify_id(_argument(node, 2, "securable_id"), result.params)
            result.enforcement.append(call)
        elif name in LOOKUP_CALLS:
            result.lookups.append(LookupCall(function=name, lineno=node.lineno, target=assigned.get(id(node))))
        elif name in RAW_DECISION_CALLS:
            result.raw_decisions.append(node.lineno)
        elif name in DENIAL_AUDIT_CALLS:
            result.denial_audits.append(node.lineno)

    result.enforcement.sort(key=lambda c: c.lineno)
    result.lookups.sort(key=lambda lookup: lookup.lineno)
    return result


def inspect_handler(handler: str) -> HandlerInspection:
    """
    Inspect a handler given as 'module:Class.method'.

    A handler that cannot be located is reported with found=False and the
    reason in error, never raised.
    """
    module, _, qualname = handler.partition(":")
    class_name, _, method_name = qualname.partition(".")
    try:
        func = find_method(module, class_name, method_name)
    except (ImportError, LookupError, SyntaxError, ValueError) as e:
        logger.warning(f"Cannot inspect handler {handler}: {e}")
        return HandlerInspection(handler=handler, found=False, error=str(e))
    return inspect_function(func, handler)


def iter_audited_methods(package: str) -> Iterator[Tuple[str, Optional[str]]]:
    """Yield ('module:Class.method', operation id) for every @audited method of a package."""
    for module, path in iter_modules(package):
        for cls, method in iter_class_methods(parse_source(path)):
            decorated, operation_id = audited_operation(method)
            if decorated:
                yield f"{module}:{cls.name}.{method.name}", operation_id
