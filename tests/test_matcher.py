"""Tests for descriptor matching."""

import pytest
import numpy as np


def _identity(label, *descriptors):
    from face_recognition_app import LabeledIdentity
    return LabeledIdentity(label, tuple(descriptors))


class TestFaceMatcher:
    """Test cases for FaceMatcher."""

    def test_exact_match_is_known(self, make_descriptor):
        """A probe identical to a stored descriptor matches at distance 0."""
        from face_recognition_app import FaceMatcher

        e1 = make_descriptor(1)
        matcher = FaceMatcher([_identity("Alice", e1)])

        result = matcher.find_best_match(e1.copy())

        assert result.is_known
        assert result.label == "Alice"
        assert result.distance == 0.0

    def test_far_probe_is_unknown(self, make_descriptor):
        """A probe farther than 0.6 from everything is unknown."""
        from face_recognition_app import FaceMatcher

        matcher = FaceMatcher([
            _identity("Alice", make_descriptor(1)),
            _identity("Bob", make_descriptor(2)),
        ])

        result = matcher.find_best_match(make_descriptor(99))

        assert not result.is_known
        assert result.label == "unknown"
        assert result.distance > 0.6
        assert result.identity is None

    def test_threshold_boundary(self):
        """Distances just inside the threshold match, just outside do not."""
        from face_recognition_app import FaceMatcher

        base = np.zeros(128)
        matcher = FaceMatcher([_identity("Alice", base)], distance_threshold=0.6)

        inside = base.copy()
        inside[0] = 0.59
        outside = base.copy()
        outside[0] = 0.61

        assert matcher.find_best_match(inside).label == "Alice"
        assert matcher.find_best_match(outside).label == "unknown"

    def test_nearest_identity_wins(self):
        """The closest identity is returned."""
        from face_recognition_app import FaceMatcher

        a = np.zeros(128)
        b = np.zeros(128)
        b[0] = 0.5
        matcher = FaceMatcher([_identity("Alice", a), _identity("Bob", b)])

        probe = np.zeros(128)
        probe[0] = 0.4

        result = matcher.find_best_match(probe)
        assert result.label == "Bob"
        assert result.distance == pytest.approx(0.1)

    def test_minimum_over_identity_descriptors(self):
        """An identity with several descriptors uses the closest one."""
        from face_recognition_app import FaceMatcher

        near = np.zeros(128)
        far = np.full(128, 1.0)
        other = np.zeros(128)
        other[0] = 0.3

        matcher = FaceMatcher([
            _identity("Other", other),
            _identity("Alice", far, near),
        ])

        result = matcher.find_best_match(np.zeros(128))
        assert result.label == "Alice"
        assert result.distance == 0.0

    def test_tie_keeps_earlier_identity(self):
        """Equal distances resolve to the first registered identity."""
        from face_recognition_app import FaceMatcher

        e = np.zeros(128)
        matcher = FaceMatcher([_identity("First", e), _identity("Second", e)])

        assert matcher.find_best_match(e).label == "First"

    def test_empty_matcher_rejected(self):
        """A matcher needs at least one identity."""
        from face_recognition_app import FaceMatcher, RegistryEmptyError

        with pytest.raises(RegistryEmptyError):
            FaceMatcher([])

    @pytest.mark.parametrize("distance, text", [
        (0.34567, "Alice (0.34)"),
        (0.456, "Alice (0.45)"),
        (0.5, "Alice (0.5)"),
        (0.0, "Alice (0)"),
    ])
    def test_match_text(self, distance, text):
        """Known matches print label and distance truncated to 2 decimals."""
        from face_recognition_app import MatchResult

        assert str(MatchResult("Alice", distance)) == text


class TestLabelFaces:
    """Test cases for labelling detected faces."""

    def test_labels_in_detection_order(self, make_descriptor, make_face):
        """Each face gets a label; unknown faces read 'Unknown'."""
        from face_recognition_app import FaceMatcher

        e1 = make_descriptor(1)
        matcher = FaceMatcher([_identity("Alice", e1)])

        labels = matcher.label_faces([
            make_face(e1),
            make_face(make_descriptor(50)),
        ])

        assert [item.text for item in labels] == ["Alice (0)", "Unknown"]

    def test_faces_without_descriptor_skipped(self, make_descriptor, make_face):
        """Detections lacking a descriptor produce no label."""
        from face_recognition_app import FaceMatcher

        matcher = FaceMatcher([_identity("Alice", make_descriptor(1))])
        assert matcher.label_faces([make_face(None)]) == []

    def test_boxes_scaled_to_display(self, make_descriptor, make_face):
        """Boxes are rescaled from frame size to display size."""
        from face_recognition_app import FaceMatcher

        e1 = make_descriptor(1)
        matcher = FaceMatcher([_identity("Alice", e1)])

        face = make_face(e1, x=10, y=20, width=30, height=40)
        (item,) = matcher.label_faces([face], (320, 240), (640, 480))

        assert item.face.bbox == (20, 40, 60, 80)


class TestDetectedFace:
    """Test cases for DetectedFace."""

    def test_properties(self):
        """bbox, center and area derive from the box."""
        from face_recognition_app import DetectedFace

        face = DetectedFace(x=100, y=50, width=80, height=100, confidence=0.95)

        assert face.bbox == (100, 50, 80, 100)
        assert face.center == (140, 100)
        assert face.area == 8000

    def test_resize_rejects_empty_source(self):
        """A zero-sized source frame cannot be scaled from."""
        from face_recognition_app import DetectedFace

        with pytest.raises(ValueError):
            DetectedFace(0, 0, 10, 10).resized((0, 0), (100, 100))

    def test_default_single_detection_picks_most_confident(
        self, fake_detector_cls, make_face, make_descriptor
    ):
        """Base detect_single returns the highest confidence face."""
        weak = make_face(make_descriptor(1), confidence=0.4)
        strong = make_face(make_descriptor(2), confidence=0.9)
        detector = fake_detector_cls([weak, strong])

        assert detector.detect_single(np.zeros((10, 10, 3), np.uint8)) is strong
        assert fake_detector_cls([]).detect_single(np.zeros((10, 10, 3), np.uint8)) is None
