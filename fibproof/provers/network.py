"""
Proving service client
======================

Submits proof requests to a remote proving service (``fibproof.service``)
and polls until the request is fulfilled:

    POST {url}/v1/proofs        {"vkey": "0x..", "stdin": {"n": N}, "system": "plonk"}
    GET  {url}/v1/proofs/<id>   {"status": "pending" | "fulfilled" | "unfulfillable", ...}

Execution stays local, so the dry run never leaves the machine. The service
proves with the same deterministic setup as ``CpuProver``, which therefore
verifies network proofs locally.
"""

import time

import requests

from fibproof.encoding import decode_hex
from fibproof.errors import ProvingCancelled, ProvingError, TransportError
from fibproof.provers.base import ProverBackend
from fibproof.provers.cpu import CpuProver
from fibproof.types import Proof, ProverMode

STATUS_PENDING = "pending"
STATUS_FULFILLED = "fulfilled"
STATUS_UNFULFILLABLE = "unfulfillable"


class NetworkProver(ProverBackend):

    mode = ProverMode.NETWORK

    def __init__(self, base_url, api_key=None, poll_interval=2.0, timeout=None,
                 session=None, verifier=None, request_timeout=30.0, logger=None):
        super().__init__(logger)
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.request_timeout = request_timeout
        self.session = session or requests.Session()
        self.verifier = verifier or CpuProver(logger=self.logger)

    @classmethod
    def from_settings(cls, settings, **kwargs):
        return cls(
            settings.network_rpc_url,
            api_key=settings.network_private_key,
            poll_interval=settings.poll_interval,
            timeout=settings.proof_timeout,
            **kwargs,
        )

    def _headers(self):
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _request(self, method, path, **kwargs):
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(
                method, url, headers=self._headers(), timeout=self.request_timeout, **kwargs
            )
        except requests.RequestException as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

        if resp.status_code >= 400:
            try:
                detail = resp.json().get("error", resp.reason)
            except ValueError:
                detail = resp.reason
            raise ProvingError(f"proving service returned {resp.status_code}: {detail}")
        try:
            return resp.json()
        except ValueError as exc:
            raise TransportError(f"{method} {url} returned a non-JSON body") from exc

    def submit(self, vk, n, system):
        body = {"vkey": vk.bytes32(), "stdin": {"n": n}, "system": system.value}
        data = self._request("POST", "/v1/proofs", json=body)
        request_id = data.get("request_id")
        if not request_id:
            raise ProvingError("proving service did not return a request id")
        self.logger.info("submitted %s request %s for n=%d", system.value, request_id, n)
        return request_id

    def status(self, request_id):
        return self._request("GET", f"/v1/proofs/{request_id}")

    def wait_for_proof(self, request_id, cancel=None, timeout=None):
        timeout = self.timeout if timeout is None else timeout
        deadline = None if timeout is None else time.monotonic() + timeout

        while True:
            if cancel is not None and cancel.is_set():
                raise ProvingCancelled(f"request {request_id} cancelled")
            data = self.status(request_id)
            state = data.get("status")
            if state == STATUS_FULFILLED:
                return data
            if state == STATUS_UNFULFILLABLE:
                raise ProvingError(f"request {request_id} is unfulfillable: {data.get('error')}")
            if state != STATUS_PENDING:
                raise ProvingError(f"request {request_id} has unknown status {state!r}")

            if deadline is not None and time.monotonic() >= deadline:
                raise ProvingCancelled(f"request {request_id} timed out after {timeout}s")
            self.logger.debug("request %s pending", request_id)
            if cancel is not None:
                cancel.wait(self.poll_interval)
            else:
                time.sleep(self.poll_interval)

    def prove(self, pk, stdin, system, cancel=None, timeout=None):
        public_values, _ = self.execute(pk.program, stdin)
        request_id = self.submit(pk.vk, stdin[0], system)
        data = self.wait_for_proof(request_id, cancel=cancel, timeout=timeout)

        remote_values = decode_hex(data.get("public_values"), "public values")
        if remote_values != public_values:
            raise ProvingError(f"request {request_id} returned public values of another execution")
        proof_bytes = decode_hex(data.get("proof"), "proof")
        return Proof(bytes=proof_bytes, public_values=remote_values, system=system)

    def verify(self, proof, vk):
        self.verifier.setup(self.program_for(vk))
        self.verifier.verify(proof, vk)
