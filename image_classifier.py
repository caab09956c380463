"""On-device label classification for action photos."""

from __future__ import annotations

import asyncio
import importlib.util
import io
import logging
import os
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
from dotenv import load_dotenv
from PIL import Image, ImageOps, UnidentifiedImageError

load_dotenv()

MOBILENET_WEIGHTS = os.getenv("MOBILENET_WEIGHTS", "imagenet")
MOBILENET_IMAGE_SIZE = int(os.getenv("MOBILENET_IMAGE_SIZE", "224"))
CLASSIFIER_TOP_K = int(os.getenv("CLASSIFIER_TOP_K", "5"))
CLASSIFIER_MIN_CONFIDENCE = float(os.getenv("CLASSIFIER_MIN_CONFIDENCE", "0.10"))
CLASSIFIER_WORKERS = int(os.getenv("CLASSIFIER_WORKERS", "1"))

# Reduce TensorFlow verbosity for cleaner logs.
os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "2")

logger = logging.getLogger(__name__)

ImageInput = Union[Image.Image, bytes, np.ndarray]
Preprocessor = Callable[[np.ndarray], np.ndarray]
Decoder = Callable[[np.ndarray, int], List[List[Tuple[str, str, float]]]]


class ClassifierError(RuntimeError):
    """Base class for label classifier failures."""


class ModelUnavailable(ClassifierError):
    """Raised once when the classification model cannot be loaded."""


class InferenceFailed(ClassifierError):
    """Raised when a single image cannot be classified."""


@dataclass(frozen=True)
class ClassificationResult:
    label: str
    confidence: float

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {self.confidence}")

    @property
    def formatted_confidence(self) -> str:
        return f"{self.confidence * 100:.1f}%"


def filter_classifications(
    results: Iterable[ClassificationResult],
    top_k: int = CLASSIFIER_TOP_K,
    min_confidence: float = CLASSIFIER_MIN_CONFIDENCE,
) -> List[ClassificationResult]:
    """Keep the ``top_k`` most confident results that clear ``min_confidence``.

    The confidence floor is strict: a result sitting exactly on it is dropped.
    An empty list means nothing recognizable was found and is not an error.
    """
    ranked = sorted(results, key=lambda result: result.confidence, reverse=True)
    return [result for result in ranked[:top_k] if result.confidence > min_confidence]


def readable_label(identifier: str) -> str:
    """Turn a model identifier such as ``water_bottle`` into ``water bottle``."""
    return identifier.replace("_", " ").strip()


def pixels_to_uint8(array: np.ndarray) -> np.ndarray:
    """Bring a pixel array into 0-255 ``uint8``.

    Float arrays whose values all fall within [0, 1] are treated as normalized
    and scaled up; anything else is clipped to the 0-255 range.
    """
    if array.dtype == np.uint8:
        return array
    if np.issubdtype(array.dtype, np.floating):
        if not np.isfinite(array).all():
            raise ValueError("Pixel array contains non-finite values")
        if array.size and array.min() >= 0.0 and array.max() <= 1.0:
            array = array * 255.0
    return np.clip(array, 0, 255).astype(np.uint8)


def load_image(image: ImageInput) -> Image.Image:
    """Decode supported inputs into a non-empty RGB PIL image."""
    try:
        if isinstance(image, Image.Image):
            decoded = image
        elif isinstance(image, (bytes, bytearray)):
            decoded = Image.open(io.BytesIO(image))
        elif isinstance(image, np.ndarray):
            decoded = Image.fromarray(pixels_to_uint8(image))
        else:
            raise TypeError(f"Unsupported image type: {type(image).__name__}")
        if decoded.width == 0 or decoded.height == 0:
            raise ValueError(f"Image has no pixels ({decoded.width}x{decoded.height})")
        return decoded.convert("RGB")
    except (Image.DecompressionBombError, UnidentifiedImageError, OSError, ValueError, TypeError) as error:
        raise InferenceFailed(f"Image could not be decoded: {error}") from error


def center_crop(image: Image.Image, size: int = MOBILENET_IMAGE_SIZE) -> Image.Image:
    """Crop the largest centered square and scale it to ``size`` x ``size``."""
    return ImageOps.fit(image, (size, size), method=Image.Resampling.BILINEAR, centering=(0.5, 0.5))


def image_to_batch(image: Image.Image, size: int = MOBILENET_IMAGE_SIZE) -> np.ndarray:
    """Convert an image into a single-item float32 batch at model resolution."""
    array = np.asarray(center_crop(image, size), dtype=np.float32)
    return np.expand_dims(array, axis=0)


class LabelClassifier(ABC):
    """Produces ranked content labels for a still image."""

    @abstractmethod
    async def classify(self, image: ImageInput) -> List[ClassificationResult]:
        """Return filtered results sorted by descending confidence."""
        raise NotImplementedError


_TF_MODULE: Optional[Any] = None
_MOBILENET_CLASS: Optional[Any] = None
_DECODE_PREDICTIONS_FN: Optional[Decoder] = None
_PREPROCESS_INPUT_FN: Optional[Preprocessor] = None


def _ensure_tensorflow_loaded() -> None:
    """Load TensorFlow and the MobileNetV2 helpers lazily."""
    global _TF_MODULE, _MOBILENET_CLASS, _DECODE_PREDICTIONS_FN, _PREPROCESS_INPUT_FN
    if _TF_MODULE is not None:
        return

    if importlib.util.find_spec("tensorflow") is None:
        raise ModelUnavailable(
            "TensorFlow is required for on-device classification. "
            "Install it via 'pip install eco-action-verifier[model]'."
        )

    try:
        tensorflow_module = importlib.import_module("tensorflow")
        keras_applications = importlib.import_module("tensorflow.keras.applications.mobilenet_v2")
        mobilenet_class = getattr(keras_applications, "MobileNetV2")
        decode_fn = getattr(keras_applications, "decode_predictions")
        preprocess_fn = getattr(keras_applications, "preprocess_input")
    except (ImportError, AttributeError) as error:
        raise ModelUnavailable(
            f"TensorFlow is installed but MobileNetV2 could not be imported: {error}. "
            "Reinstall it via 'pip install --force-reinstall eco-action-verifier[model]'."
        ) from error

    _MOBILENET_CLASS = mobilenet_class
    _DECODE_PREDICTIONS_FN = decode_fn
    _PREPROCESS_INPUT_FN = preprocess_fn
    _TF_MODULE = tensorflow_module


class MobileNetClassifier(LabelClassifier):
    """MobileNetV2 (ImageNet) classifier running on a background worker.

    The wrapped model is only read during inference, so a single instance can
    serve overlapping ``classify`` calls. ``preprocessor`` and ``decoder``
    default to the Keras MobileNetV2 helpers and may be injected together with
    ``model`` to run without TensorFlow.
    """

    def __init__(
        self,
        model: Any,
        preprocessor: Optional[Preprocessor] = None,
        decoder: Optional[Decoder] = None,
        image_size: int = MOBILENET_IMAGE_SIZE,
        top_k: int = CLASSIFIER_TOP_K,
        min_confidence: float = CLASSIFIER_MIN_CONFIDENCE,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        if preprocessor is None or decoder is None:
            _ensure_tensorflow_loaded()
        self.model = model
        self.preprocessor: Preprocessor = preprocessor or _PREPROCESS_INPUT_FN
        self.decoder: Decoder = decoder or _DECODE_PREDICTIONS_FN
        self.image_size = image_size
        self.top_k = top_k
        self.min_confidence = min_confidence
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max(1, CLASSIFIER_WORKERS),
            thread_name_prefix="label-classifier",
        )

    @classmethod
    def load(cls, weights: str = MOBILENET_WEIGHTS, **kwargs: Any) -> "MobileNetClassifier":
        """Load MobileNetV2 once; raises ``ModelUnavailable`` if that is impossible."""
        _ensure_tensorflow_loaded()
        if weights != "imagenet" and not os.path.exists(weights):
            raise ModelUnavailable(f"MobileNetV2 weights not found at '{weights}'.")

        image_size = kwargs.pop("image_size", MOBILENET_IMAGE_SIZE)
        try:
            model = _MOBILENET_CLASS(
                weights=weights,
                input_shape=(image_size, image_size, 3),
            )
        except Exception as error:  # noqa: BLE001
            raise ModelUnavailable(
                f"Unable to load MobileNetV2 weights '{weights}'. Ensure the weights are bundled "
                "or cached by running once with internet access."
            ) from error

        logger.info("Loaded MobileNetV2 classifier (weights=%s, size=%d)", weights, image_size)
        return cls(model, image_size=image_size, **kwargs)

    def predict(self, image: ImageInput) -> List[ClassificationResult]:
        """Run inference synchronously; raises ``InferenceFailed`` on any error."""
        try:
            batch = image_to_batch(load_image(image), self.image_size)
        except InferenceFailed:
            raise
        except Exception as error:  # noqa: BLE001
            raise InferenceFailed(f"Image could not be preprocessed: {error}") from error

        try:
            predictions = self.model.predict(self.preprocessor(batch), verbose=0)
            decoded = self.decoder(predictions, top=self.top_k)
        except Exception as error:  # noqa: BLE001
            raise InferenceFailed(f"Model inference failed: {error}") from error

        if not decoded:
            return []

        raw = [
            ClassificationResult(
                label=readable_label(label),
                confidence=min(1.0, max(0.0, float(probability))),
            )
            for _, label, probability in decoded[0]
        ]
        return filter_classifications(raw, self.top_k, self.min_confidence)

    async def classify(self, image: ImageInput) -> List[ClassificationResult]:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(self._executor, self.predict, image)
        except InferenceFailed as error:
            logger.warning("Classification degraded to empty result: %s", error)
            return []

    def close(self) -> None:
        self._executor.shutdown(wait=False)


def format_classifications(results: Sequence[ClassificationResult]) -> str:
    """Render results one per line as ``label: 82.0%``."""
    return "\n".join(f"{result.label}: {result.formatted_confidence}" for result in results)
