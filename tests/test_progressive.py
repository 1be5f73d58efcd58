"""Unit tests for the progressive renderer.

Tests cover:
- Construction and validation
- Sample accumulation across calls
- Batching with callbacks and the generator interface
- Reset and resize
- Image retrieval and saving
"""

import numpy as np
import pytest


@pytest.fixture
def uploaded_scene():
    """Upload the ground-and-sphere preset and its camera."""
    from glint.camera.thin_lens import setup_camera
    from glint.scene.presets import ground_and_sphere

    scene, camera = ground_and_sphere(aspect_ratio=1.0)
    scene.upload()
    setup_camera(camera)
    return scene, camera


class TestProgressiveRendererInit:
    def test_dimensions(self):
        from glint.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(32, 16, max_depth=7)
        assert renderer.width == 32
        assert renderer.height == 16
        assert renderer.max_depth == 7
        assert renderer.jitter is True
        assert renderer.sample_count == 0

    def test_oversized(self):
        from glint.core.progressive import ProgressiveRenderer

        with pytest.raises(ValueError, match="exceed maximum"):
            ProgressiveRenderer(4096, 16)

    def test_invalid_depth(self):
        from glint.core.progressive import ProgressiveRenderer

        with pytest.raises(ValueError, match="max_depth"):
            ProgressiveRenderer(16, 16, max_depth=0)

    def test_repr(self):
        from glint.core.progressive import ProgressiveRenderer

        assert "width=8" in repr(ProgressiveRenderer(8, 4))


@pytest.mark.usefixtures("uploaded_scene")
class TestAccumulation:
    def test_render_accumulates(self):
        from glint.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8, max_depth=5)
        renderer.render(3)
        assert renderer.sample_count == 3
        renderer.render(4)
        assert renderer.sample_count == 7

    def test_zero_samples_is_noop(self):
        from glint.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8, max_depth=5)
        renderer.render(0)
        assert renderer.sample_count == 0

    def test_callback_batches(self):
        from glint.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8, max_depth=5)
        renderer.render(2)

        calls = []
        renderer.render(10, batch_size=4, callback=lambda cur, tgt: calls.append((cur, tgt)))
        assert calls == [(6, 12), (10, 12), (12, 12)]

    def test_generator(self):
        from glint.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8, max_depth=5)
        progress = list(renderer.render_progressive(5, batch_size=2))
        assert progress == [(2, 5), (4, 5), (5, 5)]

    def test_reset(self):
        from glint.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8, max_depth=5)
        renderer.render(3)
        renderer.reset()
        assert renderer.sample_count == 0
        assert renderer.get_image_numpy(gamma=1.0).max() == 0.0

    def test_resize(self):
        from glint.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8, max_depth=5)
        renderer.render(2)
        renderer.resize(12, 6)
        assert (renderer.width, renderer.height) == (12, 6)
        assert renderer.sample_count == 0
        renderer.render(1)
        assert renderer.get_image_numpy().shape == (6, 12, 3)

    def test_resize_rejects_bad_size_and_keeps_state(self):
        from glint.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8, max_depth=5)
        with pytest.raises(ValueError):
            renderer.resize(0, 8)
        assert (renderer.width, renderer.height) == (8, 8)

    def test_matches_one_shot_mean(self):
        """Without jitter and with an empty scene, every sample is identical."""
        from glint.core.progressive import ProgressiveRenderer
        from glint.scene.manager import SceneManager

        SceneManager().upload()
        renderer = ProgressiveRenderer(6, 6, max_depth=5, jitter=False)
        renderer.render(1)
        first = renderer.get_image_numpy()
        renderer.render(5)
        np.testing.assert_allclose(renderer.get_image_numpy(), first, atol=1e-6)


@pytest.mark.usefixtures("uploaded_scene")
class TestImageOutput:
    def test_image_formats(self):
        from glint.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(10, 5, max_depth=5)
        renderer.render(2)

        image = renderer.get_image_numpy()
        assert image.shape == (5, 10, 3)
        assert image.dtype == np.float32
        assert 0.0 <= image.min() and image.max() <= 1.0

        image_u8 = renderer.get_image_uint8()
        assert image_u8.shape == (5, 10, 3)
        assert image_u8.dtype == np.uint8

    def test_raw_buffer_is_full_size(self):
        from glint.core.integrator import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH
        from glint.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(10, 5, max_depth=5)
        assert renderer.get_image().shape == (MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT)

    def test_save_image(self, tmp_path):
        from PIL import Image

        from glint.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(10, 5, max_depth=5)
        renderer.render(1)
        path = tmp_path / "out.png"
        renderer.save_image(str(path))

        with Image.open(path) as img:
            assert img.size == (10, 5)
            assert img.mode == "RGB"
