import pytest
from fastapi.testclient import TestClient

from web.backend.app import app


@pytest.fixture
def client():
    return TestClient(app)


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "version" in response.json()


def test_workloads(client):
    data = client.get("/workloads").json()
    ids = [w['id'] for w in data['workloads']]
    assert ids == ['default', 'classic']
    assert data['workloads'][0]['processes'][0] == {'name': "Calculator", 'work_units': 3}


def test_simulate_default(client):
    response = client.post("/simulate", json={})
    assert response.status_code == 200
    data = response.json()
    assert data['algorithm'] == "Round Robin (q=2)"
    assert len(data['processes']) == 4
    assert data['dispatch_trace'][0] == {'pid': 1, 'time': 0}
    assert data['statistics']['total_time'] == 19


def test_simulate_custom(client):
    body = {
        'processes': [{'name': "A", 'work_units': 3}, {'name': "B", 'work_units': 5},
                      {'name': "C", 'work_units': 7}, {'name': "D", 'work_units': 4}],
        'quantum': 2,
        'strict_preemption': True,
    }
    data = client.post("/simulate", json=body).json()
    completion = {p['name']: p['completion_time'] for p in data['processes']}
    assert completion == {'A': 9, 'B': 16, 'C': 19, 'D': 14}


def test_simulate_rejects_bad_workload(client):
    response = client.post("/simulate", json={'processes': [{'name': "A", 'work_units': 0}]})
    assert response.status_code == 400

    response = client.post("/simulate", json={'processes': []})
    assert response.status_code == 400


def test_simulate_rejects_bad_quantum(client):
    response = client.post("/simulate", json={'quantum': 0})
    assert response.status_code == 422


def test_realtime_websocket(client):
    with client.websocket_connect("/ws/realtime") as ws:
        ws.send_json({'action': 'init', 'request': {
            'processes': [{'name': "A", 'work_units': 2}, {'name': "B", 'work_units': 1}],
            'quantum': 1,
        }})
        init = ws.receive_json()
        assert init['type'] == 'initialized'
        assert init['process_count'] == 2

        ws.send_json({'action': 'step'})
        step = ws.receive_json()
        assert step['type'] == 'step_result'
        assert not step['complete']
        assert step['snapshot']['time'] == 1

        ws.send_json({'action': 'run', 'speed': 1000})
        messages = [ws.receive_json(), ws.receive_json()]
        assert messages[-1]['complete']
        assert messages[-1]['final']['statistics']['total_time'] == 3


def test_realtime_websocket_errors(client):
    with client.websocket_connect("/ws/realtime") as ws:
        ws.send_json({'action': 'init', 'request': {'quantum': -1}})
        assert ws.receive_json()['type'] == 'error'

        ws.send_json({'action': 'init', 'request': {'processes': [{'name': "", 'work_units': 1}]}})
        assert ws.receive_json()['type'] == 'error'

        ws.send_json({'action': 'pause'})
        assert ws.receive_json()['type'] == 'error'


@pytest.mark.parametrize('action', ['step', 'run'])
def test_realtime_websocket_requires_init(client, action):
    with client.websocket_connect("/ws/realtime") as ws:
        ws.send_json({'action': action})
        reply = ws.receive_json()
        assert reply == {'type': 'error', 'message': "not initialized"}


def test_realtime_websocket_malformed_messages(client):
    with client.websocket_connect("/ws/realtime") as ws:
        ws.send_text("not json")
        assert ws.receive_json()['type'] == 'error'

        ws.send_text("[1, 2]")
        assert ws.receive_json()['type'] == 'error'

        ws.send_json({'action': 'init', 'request': 5})
        assert ws.receive_json()['type'] == 'error'

        # 오류 뒤에도 연결은 유지된다
        ws.send_json({'action': 'init', 'request': {'quantum': 1}})
        assert ws.receive_json()['type'] == 'initialized'

        for speed in ("fast", 0, None):
            ws.send_json({'action': 'run', 'speed': speed})
            assert ws.receive_json()['type'] == 'error'

        ws.send_json({'action': 'step'})
        step = ws.receive_json()
        assert step['type'] == 'step_result'
        assert step['snapshot']['time'] == 1
