"""Tests for the content-fit viewport transform."""

import pytest

from layout import BoundingBox
from viewport import ViewTransform, fit_viewport


class TestFitViewport:
    def test_exact_fit(self):
        view = fit_viewport(BoundingBox(0, 0, 1000, 500), 1200, 700)
        assert view == ViewTransform(1.0, 100.0, 100.0)

    def test_never_zooms_in(self):
        view = fit_viewport(BoundingBox(0, 0, 100, 100), 1200, 700)
        assert view.scale == 1.0
        assert view.apply(50, 50) == (600, 350)

    def test_minimum_scale(self):
        view = fit_viewport(BoundingBox(0, 0, 10000, 100), 1200, 700)
        assert view.scale == pytest.approx(0.3)

    def test_partial_scale(self):
        view = fit_viewport(BoundingBox(0, 0, 2000, 500), 1200, 700)
        assert view.scale == pytest.approx(0.5)

    def test_preserve_keeps_previous(self):
        previous = ViewTransform(0.7, 10, 20)
        view = fit_viewport(BoundingBox(0, 0, 100, 100), 1200, 700, previous=previous, preserve=True)
        assert view is previous

    def test_empty_content(self):
        assert fit_viewport(None, 1200, 700) == ViewTransform()
