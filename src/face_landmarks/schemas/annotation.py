"""Landmark annotation schema.

One annotation per image: the detected 68-point set plus source metadata.
"""

from __future__ import annotations

from pydantic import BaseModel

from face_landmarks.schemas.info import AnnotationInfo
from face_landmarks.schemas.landmarks import FaceLandmarks68


class LandmarkAnnotation(BaseModel):
    """Full annotation for a single image."""

    filename: str
    info: AnnotationInfo
    landmarks: FaceLandmarks68
