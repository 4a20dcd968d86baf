"""Core loop: turns orchestrator requests into address allocations."""

from __future__ import annotations

import dataclasses
import queue
import threading
from typing import Protocol

from . import vlogger as log
from .ipamspec import IPAMRequest, IPAMResponse, Operation
from .manager import Manager

_STOP = object()
_JOIN_TIMEOUT = 5.0


class Orchestrator(Protocol):
    """The side that watches resources and sends requests to the controller."""

    def setup_communication_channels(
        self, req_queue: queue.Queue, resp_queue: queue.Queue
    ) -> None:
        """Take the queues to send requests on and read responses from."""

    def start(self, stop_event: threading.Event) -> None:
        """Start watching for resources."""

    def stop(self) -> None:
        """Stop watching for resources."""


class Controller:
    """Serves IPAM requests from an orchestrator with a manager."""

    def __init__(
        self,
        orchestrator: Orchestrator,
        manager: Manager,
        stop_event: threading.Event | None = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.manager = manager
        self.stop_event = stop_event if stop_event is not None else threading.Event()
        self.req_queue: queue.Queue = queue.Queue()
        self.resp_queue: queue.Queue = queue.Queue()
        self._worker: threading.Thread | None = None

    def handle_request(self, req: IPAMRequest) -> IPAMResponse | None:
        """Serve one request; None when no address could be allocated."""
        if req.operation == Operation.CREATE:
            ip_addr = self.manager.get_ip_address(req)
            if ip_addr:
                return IPAMResponse(request=req, ip_addr=ip_addr, status=True)
            ip_addr = self.manager.allocate_next_ip_address(req)
            if ip_addr:
                log.debug("[CORE] Allocated IP: %s for Request: %s", ip_addr, req)
                return IPAMResponse(request=req, ip_addr=ip_addr, status=True)
            return None
        if req.operation == Operation.DELETE:
            ip_addr = self.manager.get_ip_address(req)
            if ip_addr:
                req = dataclasses.replace(req, ip_addr=ip_addr)
                self.manager.release_ip_address(req)
            return IPAMResponse(request=req, ip_addr="", status=True)
        return None

    def _run(self) -> None:
        for req in iter(self.req_queue.get, _STOP):
            try:
                resp = self.handle_request(req)
            except Exception as exc:  # keep serving other requests
                log.critical("[CORE] Failed to handle request %s: %s", req, exc)
                continue
            if resp is not None:
                self.resp_queue.put(resp)

    def start(self) -> None:
        """Connect the orchestrator, start it and start serving requests."""
        self.orchestrator.setup_communication_channels(self.req_queue, self.resp_queue)
        log.info("[CORE] Controller started")
        self.orchestrator.start(self.stop_event)
        self._worker = threading.Thread(
            target=self._run, name="ipam-controller", daemon=True
        )
        self._worker.start()

    def stop(self) -> None:
        """Stop the orchestrator and the request loop."""
        self.orchestrator.stop()
        self.stop_event.set()
        if self._worker is not None:
            self.req_queue.put(_STOP)
            self._worker.join(_JOIN_TIMEOUT)
            self._worker = None