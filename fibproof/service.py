"""
Proving service
===============

HTTP front end for a prover backend, the counterpart of ``NetworkProver``.

    POST /v1/proofs        {"vkey": "0x..", "stdin": {"n": N}, "system": "groth16"}
                           -> 202 {"request_id", "status": "pending"}
    GET  /v1/proofs/<id>   -> {"request_id", "status", "system", "proof",
                               "public_values", "error"}
    GET  /v1/health        -> {"status": "ok", "programs": ["0x.."]}

Requests are proven one at a time on a single worker thread. Request state
lives in a TinyDB table (in memory unless a path is given); a request that
fails to prove becomes ``unfulfillable`` with the error recorded.

When an API key is configured every call under /v1/proofs needs
``Authorization: Bearer <key>``.
"""

import logging
import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor

from flask import Blueprint, Flask, current_app, jsonify, request
from tinydb import Query, TinyDB
from tinydb.storages import MemoryStorage

from fibproof.errors import ConfigurationError
from fibproof.provers import CpuProver
from fibproof.provers.network import STATUS_FULFILLED, STATUS_PENDING, STATUS_UNFULFILLABLE
from fibproof.types import UINT32_MAX, ProofSystem
from fibproof.zkvm import FIBONACCI_PROGRAM

logger = logging.getLogger(__name__)

proofs_bp = Blueprint("proofs", __name__, url_prefix="/v1")

DATA = Query()


class ProofService:
    """Request table, worker and backend shared by the blueprint views."""

    def __init__(self, prover, db, api_key=None, programs=(FIBONACCI_PROGRAM,), executor=None):
        self.prover = prover
        self.table = db.table("requests")
        self.api_key = api_key
        self.executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="fibproof-job")
        self._lock = threading.Lock()
        self.proving_keys = {}
        for program in programs:
            pk, vk = prover.setup(program)
            self.proving_keys[vk.hex] = pk

    # ─── DB helpers ───

    def db_get(self, request_id):
        with self._lock:
            rows = self.table.search(DATA.request_id == request_id)
        return rows[0] if rows else None

    def db_set(self, request_id, **fields):
        with self._lock:
            self.table.upsert(dict(fields, request_id=request_id), DATA.request_id == request_id)

    # ─── jobs ───

    def submit(self, pk, n, system):
        request_id = uuid.uuid4().hex
        self.db_set(
            request_id,
            status=STATUS_PENDING,
            system=system.value,
            n=n,
            vkey=pk.vk.bytes32(),
            proof=None,
            public_values=None,
            error=None,
            created_at=time.time(),
        )
        self.executor.submit(self._run, request_id, pk, n, system)
        return request_id

    def _run(self, request_id, pk, n, system):
        logger.info("proving request %s: %s n=%d", request_id, system.value, n)
        try:
            proof = self.prover.prove(pk, [n], system)
        except Exception as exc:
            logger.warning("request %s is unfulfillable: %s", request_id, exc)
            self.db_set(request_id, status=STATUS_UNFULFILLABLE, error=str(exc))
            return
        self.db_set(
            request_id,
            status=STATUS_FULFILLED,
            proof="0x" + proof.bytes.hex(),
            public_values="0x" + proof.public_values.hex(),
        )
        logger.info("request %s fulfilled", request_id)


def _service():
    return current_app.extensions["fibproof"]


def _error(status, message):
    return jsonify({"error": message}), status


def _authorized(service):
    if not service.api_key:
        return True
    header = request.headers.get("Authorization", "")
    return header == f"Bearer {service.api_key}"


def _parse_body(body):
    if not isinstance(body, dict):
        raise ValueError("request body must be a JSON object")
    vkey = body.get("vkey")
    if not isinstance(vkey, str):
        raise ValueError("vkey must be a hex string")
    stdin = body.get("stdin")
    n = stdin.get("n") if isinstance(stdin, dict) else None
    if isinstance(n, bool) or not isinstance(n, int) or not 0 <= n <= UINT32_MAX:
        raise ValueError("stdin.n must be a uint32")
    try:
        system = ProofSystem.parse(body.get("system", ProofSystem.GROTH16.value))
    except ConfigurationError as exc:
        raise ValueError(str(exc)) from exc
    return vkey.lower().removeprefix("0x"), n, system


@proofs_bp.route("/health")
def health():
    service = _service()
    return jsonify({"status": "ok", "programs": ["0x" + vk for vk in service.proving_keys]})


@proofs_bp.route("/proofs", methods=["POST"])
def create_proof_request():
    service = _service()
    if not _authorized(service):
        return _error(401, "missing or invalid bearer token")
    try:
        vkey, n, system = _parse_body(request.get_json(silent=True))
    except ValueError as exc:
        return _error(400, str(exc))

    pk = service.proving_keys.get(vkey)
    if pk is None:
        return _error(404, f"unknown program 0x{vkey}")

    request_id = service.submit(pk, n, system)
    return jsonify({"request_id": request_id, "status": STATUS_PENDING}), 202


@proofs_bp.route("/proofs/<request_id>")
def get_proof_request(request_id):
    service = _service()
    if not _authorized(service):
        return _error(401, "missing or invalid bearer token")
    row = service.db_get(request_id)
    if row is None:
        return _error(404, f"unknown request {request_id}")
    return jsonify({
        "request_id": row["request_id"],
        "status": row["status"],
        "system": row["system"],
        "proof": row.get("proof"),
        "public_values": row.get("public_values"),
        "error": row.get("error"),
    })


def create_app(prover=None, db=None, api_key=None, executor=None):
    """Flask app serving ``prover`` (a CpuProver unless given)."""
    if prover is None:
        prover = CpuProver()
    if db is None:
        db = TinyDB(storage=MemoryStorage)

    app = Flask(__name__)
    app.extensions["fibproof"] = ProofService(prover, db, api_key=api_key, executor=executor)
    app.register_blueprint(proofs_bp)
    return app
