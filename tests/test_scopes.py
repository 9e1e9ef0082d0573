import logging

import pytest

from background_scheduler.scopes import ServiceLifetime, ServiceRegistry


class Repository:
    def __init__(self):
        self.closed = False

    def close(self) -> None:
        self.closed = True


class FailingClose:
    def close(self) -> None:
        raise RuntimeError("cannot close")


@pytest.fixture(scope="function")
def registry() -> ServiceRegistry:
    return ServiceRegistry()


def test_singleton_is_shared_across_scopes(registry: ServiceRegistry):
    registry.add_singleton(Repository)

    with registry.create_scope() as first, registry.create_scope() as second:
        assert first.resolve(Repository) is second.resolve(Repository)


def test_singleton_instance_is_not_closed_by_scope(registry: ServiceRegistry):
    repository = Repository()
    registry.add_singleton(Repository, instance=repository)

    with registry.create_scope() as scope:
        assert scope.resolve(Repository) is repository

    assert not repository.closed


def test_scoped_service_is_cached_per_scope(registry: ServiceRegistry):
    registry.add_scoped(Repository)

    with registry.create_scope() as first:
        instance = first.resolve(Repository)
        assert first.resolve(Repository) is instance
    with registry.create_scope() as second:
        assert second.resolve(Repository) is not instance

    assert instance.closed


def test_transient_service_is_created_on_every_resolve(registry: ServiceRegistry):
    registry.add_transient(Repository)

    with registry.create_scope() as scope:
        first, second = scope.resolve(Repository), scope.resolve(Repository)
        assert first is not second

    assert first.closed and second.closed


def test_factory_registration(registry: ServiceRegistry):
    registry.add_scoped("settings", lambda: {"region": "eu"})
    assert registry.get_registration("settings")[0] == ServiceLifetime.SCOPED

    with registry.create_scope() as scope:
        assert scope.resolve("settings") == {"region": "eu"}


def test_factory_required_for_non_class_keys(registry: ServiceRegistry):
    with pytest.raises(ValueError):
        registry.add_transient("settings")


def test_unregistered_class_is_created_by_scope(registry: ServiceRegistry):
    with registry.create_scope() as scope:
        instance = scope.resolve(Repository)

    assert isinstance(instance, Repository)
    assert instance.closed


def test_unregistered_key(registry: ServiceRegistry):
    with registry.create_scope() as scope:
        with pytest.raises(KeyError):
            scope.resolve("missing")


def test_closed_scope_cannot_resolve(registry: ServiceRegistry):
    scope = registry.create_scope()
    scope.close()

    assert scope.is_closed
    with pytest.raises(RuntimeError):
        scope.resolve(Repository)


def test_close_errors_are_logged(registry: ServiceRegistry, caplog):
    registry.add_scoped(FailingClose)
    registry.add_scoped(Repository)

    with caplog.at_level(logging.ERROR, logger="background_scheduler.scopes"):
        with registry.create_scope() as scope:
            scope.resolve(Repository)
            scope.resolve(FailingClose)
            repository = scope.resolve(Repository)

    assert repository.closed
    assert any("Error closing service" in record.getMessage() for record in caplog.records)
