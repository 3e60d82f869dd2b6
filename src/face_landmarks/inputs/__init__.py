"""Input resolution, canonicalization and batching."""

from face_landmarks.inputs.batch import assemble
from face_landmarks.inputs.canonicalize import canonicalize, compute_letterbox
from face_landmarks.inputs.net_input import NetInput, to_item, to_net_input

__all__ = [
    "NetInput",
    "assemble",
    "canonicalize",
    "compute_letterbox",
    "to_item",
    "to_net_input",
]
