from __future__ import annotations
from flask import Flask, request, jsonify
from yarn_mapper.api.orchestrator import REGISTRY, SyncPipeline
from yarn_mapper.config.env import get_api_config
from yarn_mapper.mapping.engine import map_text
from yarn_mapper.mapping.store import VersionRegistry

import logging
import os

import time
from collections import deque, defaultdict

app = Flask(__name__)

# Configuration helpers (overridable via app.config in tests)

def _registry() -> VersionRegistry:
    return app.config.get('REGISTRY') or REGISTRY


def _get_rate_limit() -> tuple[int, float]:
    n = app.config.get('RATE_LIMIT_N')
    w = app.config.get('RATE_LIMIT_WINDOW_SEC')
    cfg = get_api_config()
    if n is None:
        n = cfg.rate_limit_n
    if w is None:
        w = cfg.rate_limit_window_sec
    return int(n), float(w)

_recent: dict[str, deque[float]] = defaultdict(lambda: deque(maxlen=100))


def _trust_forwarded() -> bool:
    trust = app.config.get('TRUST_FORWARDED')
    if trust is None:
        trust = get_api_config().trust_forwarded
    return bool(trust)


def _client_ip() -> str:
    # X-Forwarded-For is client-controlled unless a proxy in front rewrites it
    if _trust_forwarded():
        xff = request.headers.get('X-Forwarded-For')
        if xff:
            return xff.split(',')[0].strip()
    return request.remote_addr or 'anon'


def _prune(now: float, window: float):
    # Drop old entries outside window, and clients with nothing left
    for key in list(_recent.keys()):
        dq = _recent.get(key)
        if dq is None:
            continue
        while dq and now - dq[0] > window:
            dq.popleft()
        if not dq:
            _recent.pop(key, None)


def _check_rate_limit(ip: str):
    # Allow if rate limiting disabled or N <= 0
    n, window = _get_rate_limit()
    if n <= 0:
        return None
    now = time.time()
    _prune(now, window)
    dq = _recent[ip]
    if len(dq) >= n:
        retry = max(0.0, window - (now - dq[0]))
        resp = jsonify({'error': 'rate_limited'})
        resp.status_code = 429
        resp.headers['Retry-After'] = f"{retry:.2f}"
        return resp
    dq.append(now)
    return None

@app.before_request
def _rate_limit():
    if request.method == 'POST' and request.path == '/submit':
        return _check_rate_limit(_client_ip())
    return None


def _is_valid_log(payload: dict) -> bool:
    data = payload.get('data')
    # false/0/empty containers are rejected along with blank text
    return bool(data) and str(data).strip() != ''


@app.get('/')
def index():
    return jsonify({
        'message': 'Welcome to the API! Submit intermediary Minecraft logs to /submit to map them to Yarn names.'
    })

@app.get('/versions')
def get_versions():
    return jsonify({'versions': _registry().list_versions()})

@app.post('/submit')
def submit():
    payload = request.get_json(force=True, silent=True)
    if not isinstance(payload, dict) or not _is_valid_log(payload):
        return jsonify({'message': 'Minecraft log is empty/invalid.'}), 422
    log = str(payload['data'])
    version = str(payload.get('version') or '')
    hastebin = payload.get('hastebin') is True

    mapped = map_text(_registry(), version, log)
    if mapped is None:
        return jsonify({
            'log': log,
            'message': f'Failed to find version information for {version}',
        })
    return jsonify({'log': mapped, 'hastebin': hastebin})

@app.get('/status')
def status():
    registry = _registry()
    versions = {}
    for v in registry.list_versions():
        table = registry.get(v)
        if table is not None:
            versions[v] = table.size()
    pipeline = app.config.get('PIPELINE')
    events = pipeline.events[-50:] if pipeline is not None else []
    return jsonify({'versions': versions, 'events': events})


def main():  # pragma: no cover
    logging.basicConfig(
        level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    pipeline = SyncPipeline(REGISTRY)
    app.config['PIPELINE'] = pipeline
    pipeline.start()
    cfg = get_api_config()
    app.run(host=cfg.host, port=cfg.port)


if __name__ == '__main__':
    main()
