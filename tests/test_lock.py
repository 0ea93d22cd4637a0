from types import SimpleNamespace

import grpc
import pytest

from daprkit.base import DaprError
from daprkit.lock import LockMixin, LockRequest, UnlockRequest, UnlockStatus

STORE = "store"


class _RpcFailure(grpc.RpcError):
    pass


class _FakeLockServer:
    def __init__(self, unlock_status=UnlockStatus.SUCCESS):
        self.requests = []
        self.unlock_status = unlock_status

    def TryLockAlpha1(self, request):
        self.requests.append(request)
        return SimpleNamespace(success=True)

    def UnlockAlpha1(self, request):
        self.requests.append(request)
        return SimpleNamespace(status=self.unlock_status)


class _FailingServer:
    def TryLockAlpha1(self, request):
        raise _RpcFailure("down")

    def UnlockAlpha1(self, request):
        raise _RpcFailure("down")


@pytest.fixture
def server():
    return _FakeLockServer()


@pytest.fixture
def client(server):
    return LockMixin(server, auth_token="")


def test_try_lock_invalid_store_name(client):
    with pytest.raises(DaprError, match="storeName is empty"):
        client.try_lock_alpha1("", LockRequest())


def test_try_lock_invalid_request(client):
    with pytest.raises(DaprError, match="request is nil"):
        client.try_lock_alpha1(STORE, None)


def test_try_lock(client, server):
    response = client.try_lock_alpha1(
        STORE, LockRequest(lock_owner="owner1", resource_id="resource1", expiry_in_seconds=5)
    )
    assert response.success is True
    sent = server.requests[-1]
    assert (sent.store_name, sent.resource_id, sent.lock_owner, sent.expiry_in_seconds) == (
        STORE,
        "resource1",
        "owner1",
        5,
    )


def test_unlock_invalid_store_name(client):
    with pytest.raises(DaprError, match="storeName is empty"):
        client.unlock_alpha1("", UnlockRequest(lock_owner="owner1", resource_id="resource1"))


def test_unlock_invalid_request(client):
    with pytest.raises(DaprError, match="request is nil"):
        client.unlock_alpha1("testLockStore", None)


def test_unlock(client):
    response = client.unlock_alpha1(
        STORE, UnlockRequest(lock_owner="owner1", resource_id="resource1")
    )
    assert response.status == "SUCCESS"
    assert response.status_code == 0


def test_unlock_other_status():
    client = LockMixin(_FakeLockServer(UnlockStatus.LOCK_BELONG_TO_OTHERS), auth_token="")
    response = client.unlock_alpha1(STORE, UnlockRequest(lock_owner="o", resource_id="r"))
    assert response.status == "LOCK_BELONG_TO_OTHERS"
    assert response.status_code == 2


def test_server_errors_are_wrapped():
    client = LockMixin(_FailingServer(), auth_token="")
    with pytest.raises(DaprError, match="error getting lock"):
        client.try_lock_alpha1(STORE, LockRequest())
    with pytest.raises(DaprError, match="error getting lock"):
        client.unlock_alpha1(STORE, UnlockRequest())