from pathlib import Path

import pytest
from pydantic import ValidationError

from routedoc.config import GeneratorOptions
from routedoc.domain.models import BoundMethod, ObjectReference, Route, StringReference
from routedoc.synth.handlers import format_operation_id, resolve_handler


def opts(root: Path) -> GeneratorOptions:
    return GeneratorOptions(title="t", version="1", path=root)


def test_format_operation_id():
    assert format_operation_id("UsersController.show") == "usersControllerShow"
    assert format_operation_id("#controllers/users_controller.index") == "controllersUsersControllerIndex"
    assert format_operation_id("") == ""


def test_format_operation_id_is_pure_and_collides_on_same_tokens():
    assert format_operation_id("users.show") == format_operation_id("users.show")
    assert format_operation_id("users.show") == format_operation_id("users_show") == "usersShow"


def test_resolve_string_reference(tmp_path: Path):
    r = resolve_handler(StringReference(value="UsersController.show"), opts(tmp_path))
    assert r is not None
    assert r.source_file == tmp_path.resolve() / "app" / "controllers" / "UsersController.py"
    assert r.action == "show"
    assert r.display_path == "controllers/UsersController"


def test_resolve_object_reference(tmp_path: Path):
    ref = ObjectReference(module_path="#controllers/users_controller", method_name="index")
    r = resolve_handler(ref, opts(tmp_path))
    assert r.source_file == tmp_path.resolve() / "app" / "controllers" / "users_controller.py"
    assert r.display_path == "controllers/users_controller"
    assert r.action == "index"


def test_resolve_bound_method(tmp_path: Path):
    ref = BoundMethod(source_module="app.controllers.users_controller", method_name="show")
    r = resolve_handler(ref, opts(tmp_path))
    assert r.source_file == tmp_path.resolve() / "app" / "controllers" / "users_controller.py"
    assert r.display_path == "controllers/users_controller"


def test_unresolvable_references(tmp_path: Path):
    o = opts(tmp_path)
    assert resolve_handler(None, o) is None
    assert resolve_handler(StringReference(value="Closure"), o) is None
    assert resolve_handler(BoundMethod(source_module="app.x", method_name="handle"), o) is None
    assert resolve_handler(BoundMethod(source_module="", method_name="show"), o) is None


def test_route_normalizes_methods_and_handler():
    r = Route.model_validate(
        {"pattern": "/x", "methods": ["get", "head", "GET"], "handler": "A.b"}
    )
    assert r.methods == ["GET", "HEAD"]
    assert r.handler == StringReference(value="A.b")
    assert r.middleware == []


def test_route_object_reference_shapes():
    a = Route.model_validate(
        {"pattern": "/x", "methods": ["GET"], "handler": {"reference": ["#controllers/x", "show"]}}
    )
    b = Route.model_validate(
        {"pattern": "/x", "methods": ["GET"], "handler": {"moduleNameOrPath": "#controllers/x", "method": "show"}}
    )
    assert a.handler == b.handler == ObjectReference(module_path="#controllers/x", method_name="show")


def test_route_resolved_handler_keeps_handler_string():
    r = Route.model_validate(
        {
            "pattern": "/x",
            "methods": ["GET"],
            "handler": "XController.y",
            "meta": {"resolvedHandler": {"namespace": "app/controllers/XController", "method": "y"}},
        }
    )
    assert isinstance(r.handler, BoundMethod)
    assert r.handler.raw == "XController.y"


def test_route_middleware_names():
    r = Route.model_validate(
        {"pattern": "/x", "methods": ["GET"], "middleware": [{"name": "auth"}, "throttle"]}
    )
    assert r.middleware == ["auth", "throttle"]
    assert r.handler is None


def test_route_rejects_unknown_handler_shape():
    with pytest.raises(ValidationError):
        Route.model_validate({"pattern": "/x", "methods": ["GET"], "handler": 42})


def test_route_rejects_unknown_method():
    with pytest.raises(ValidationError):
        Route.model_validate({"pattern": "/x", "methods": ["FETCH"]})


def test_bound_method_legacy_namespace_display_path(tmp_path: Path):
    ref = BoundMethod(source_module="App/Controllers/Http/UsersController", method_name="show")
    r = resolve_handler(ref, opts(tmp_path))
    assert r.source_file == tmp_path.resolve() / "App" / "Controllers" / "Http" / "UsersController.py"
    assert r.display_path == "UsersController"
