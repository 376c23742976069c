"""
Model execution through onnxruntime.
"""

import hashlib
import threading
from typing import Optional

import numpy as np
import onnxruntime as ort
from onnxruntime.capi.onnxruntime_pybind11_state import (
    Fail,
    InvalidArgument,
    InvalidGraph,
    InvalidProtobuf,
    NoModel,
    RuntimeException,
)

from .errors import InferenceError, ModelLoadError

# Errors raised by the runtime when a model cannot be parsed or executed
RUNTIME_ERRORS = (
    Fail,
    InvalidArgument,
    InvalidGraph,
    InvalidProtobuf,
    NoModel,
    RuntimeException,
    RuntimeError,
    ValueError,
)


class ModelRunner:
    """
    Runs one forward pass of a serialized model on a packed input tensor.

    By default every call builds a fresh interpreter and discards it, so runs
    share no state. With cache_sessions=True one interpreter is kept per model
    name and calls for that model are serialized through its own lock.
    """

    def __init__(
        self,
        num_threads: int = 2,
        providers: tuple[str, ...] = ("CPUExecutionProvider",),
        cache_sessions: bool = False,
    ):
        self.num_threads = num_threads
        self.providers = list(providers)
        self.cache_sessions = cache_sessions

        self._sessions: dict[str, tuple[ort.InferenceSession, threading.Lock, str]] = {}
        self._sessions_lock = threading.Lock()

    def _session_options(self) -> ort.SessionOptions:
        options = ort.SessionOptions()
        options.intra_op_num_threads = self.num_threads
        options.inter_op_num_threads = 1
        return options

    def load(self, model_bytes: bytes, model_name: str = "model") -> ort.InferenceSession:
        """
        Build an interpreter from raw model bytes.

        Args:
            model_bytes: Serialized model
            model_name: Name used in error messages

        Returns:
            onnxruntime InferenceSession
        """
        if not model_bytes:
            raise ModelLoadError(model_name, f"Could not read {model_name}: artifact is empty.")

        try:
            return ort.InferenceSession(
                bytes(model_bytes),
                sess_options=self._session_options(),
                providers=self.providers,
            )
        except RUNTIME_ERRORS as e:
            raise ModelLoadError(model_name, f"Could not load {model_name}: {e}") from e

    def _get_session(self, model_bytes: bytes, model_name: str):
        digest = hashlib.sha256(model_bytes).hexdigest()
        with self._sessions_lock:
            cached = self._sessions.get(model_name)
            # A changed artifact under the same name replaces its interpreter
            if cached is None or cached[2] != digest:
                session = self.load(model_bytes, model_name)
                cached = (session, threading.Lock(), digest)
                self._sessions[model_name] = cached
            return cached[0], cached[1]

    def run(
        self, model_bytes: bytes, input_tensor: np.ndarray, model_name: Optional[str] = None
    ) -> np.ndarray:
        """
        Execute a model and return its raw output scores.

        Args:
            model_bytes: Serialized model
            input_tensor: Packed float32 input (see preprocessing.pack_tensor)
            model_name: Artifact name, used for errors and session caching

        Returns:
            1-D float32 score vector read from the first model output
        """
        name = model_name or "model"

        if self.cache_sessions and model_name is not None:
            session, lock = self._get_session(model_bytes, model_name)
            with lock:
                return self._invoke(session, input_tensor, name)

        session = self.load(model_bytes, name)
        return self._invoke(session, input_tensor, name)

    def _invoke(
        self, session: ort.InferenceSession, input_tensor: np.ndarray, model_name: str
    ) -> np.ndarray:
        model_input = session.get_inputs()[0]
        data = self._bind_input(model_input, input_tensor, model_name)

        try:
            outputs = session.run(None, {model_input.name: data})
        except RUNTIME_ERRORS as e:
            raise InferenceError(f"{model_name} failed to execute: {e}") from e

        if not outputs:
            raise InferenceError(f"{model_name} produced no output")

        return np.asarray(outputs[0], dtype=np.float32).reshape(-1)

    @staticmethod
    def _bind_input(model_input, input_tensor: np.ndarray, model_name: str) -> np.ndarray:
        """Copy the flat input into the model's declared input shape."""
        if model_input.type != "tensor(float)":
            raise InferenceError(
                f"{model_name} expects {model_input.type} input, got tensor(float)"
            )

        # Dynamic dimensions (batch) are bound to 1
        shape = [dim if isinstance(dim, int) and dim > 0 else 1 for dim in model_input.shape]
        data = np.ascontiguousarray(input_tensor, dtype=np.float32)

        expected = int(np.prod(shape)) if shape else 1
        if data.size != expected:
            raise InferenceError(
                f"{model_name} input expects {expected} values, got {data.size}"
            )

        return data.reshape(shape)

    def clear(self) -> None:
        """Drop all cached interpreters."""
        with self._sessions_lock:
            self._sessions.clear()
