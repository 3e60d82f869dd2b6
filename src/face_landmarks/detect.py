"""Landmark detection entrypoint for face_landmarks.

Usage:
    face-landmarks-detect input=/path/to/images                 # defaults
    face-landmarks-detect input=face.png weights=net.pt         # trained weights
    face-landmarks-detect input=faces/ model=landmark68_tiny    # override model
    face-landmarks-detect input=faces/ inference.padding=top_left
"""

import sys
from pathlib import Path

import hydra
from loguru import logger
from omegaconf import DictConfig, OmegaConf
from PIL import Image

# CRITICAL: import models to trigger @register decorators BEFORE Hydra parses config
import face_landmarks.models  # noqa: F401
from face_landmarks.config import LandmarkInferenceConfig
from face_landmarks.inference import TorchLandmarkInferencer
from face_landmarks.io import LandmarkWriter
from face_landmarks.models.base import BaseLandmarkNet
from face_landmarks.schemas import AnnotationInfo, LandmarkAnnotation
from face_landmarks.utils.files import IMAGE_EXTENSIONS, get_files


@hydra.main(version_base=None, config_path="conf", config_name="detect")
def main(cfg: DictConfig) -> None:
    """Detect landmarks on every image under ``cfg.input``."""
    logger.remove()
    logger.add(sys.stderr, level=cfg.get("log_level", "INFO"))

    logger.info(f"Configuration:\n{OmegaConf.to_yaml(cfg)}")

    config = LandmarkInferenceConfig(
        **OmegaConf.to_container(cfg.inference, resolve=True)  # type: ignore[arg-type]
    )

    model: BaseLandmarkNet = hydra.utils.instantiate(cfg.model)
    if cfg.get("weights"):
        inferencer = TorchLandmarkInferencer.load(model, cfg.weights, config)
    else:
        logger.warning("No weights given, running a randomly initialized network")
        inferencer = TorchLandmarkInferencer(model, config)

    paths = get_files(Path(cfg.input), IMAGE_EXTENSIONS)
    if not paths:
        logger.error(f"No images found under {cfg.input}")
        sys.exit(1)

    writer = LandmarkWriter(Path(cfg.output_dir))
    batch_size = int(cfg.get("batch_size", 8))
    source = type(model).__name__

    with inferencer:
        for start in range(0, len(paths), batch_size):
            chunk = paths[start : start + batch_size]
            images = [Image.open(p).convert("RGB") for p in chunk]
            results = inferencer.detect_landmarks(images)
            for path, landmarks in zip(chunk, results):  # type: ignore[arg-type]
                writer.write(
                    LandmarkAnnotation(
                        filename=path.name,
                        info=AnnotationInfo(
                            annotations_source=source,
                            image_width=landmarks.image_width,
                            image_height=landmarks.image_height,
                            input_size=config.input_size,
                        ),
                        landmarks=landmarks,
                    )
                )
            logger.info(f"Processed {start + len(chunk)}/{len(paths)} images")

    logger.info(f"Landmarks written to {writer.output_dir}")


if __name__ == "__main__":
    main()
