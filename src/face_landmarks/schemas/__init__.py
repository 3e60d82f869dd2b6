"""Landmark, geometry and annotation schemas."""

from face_landmarks.schemas.annotation import LandmarkAnnotation
from face_landmarks.schemas.geometry import ItemGeometry
from face_landmarks.schemas.info import AnnotationInfo
from face_landmarks.schemas.landmarks import FaceLandmarks68, LandmarkSet, Point

__all__ = [
    "AnnotationInfo",
    "FaceLandmarks68",
    "ItemGeometry",
    "LandmarkAnnotation",
    "LandmarkSet",
    "Point",
]
