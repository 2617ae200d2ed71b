import unittest
from io import BytesIO

from PIL import Image

from services.image_converter import ImageConversionError, convert_image, convert_image_bytes


def _animated_gif(frames: int = 3) -> bytes:
    colors = [(255, 0, 0), (0, 255, 0), (0, 0, 255), (255, 255, 0)]
    images = [Image.new("RGB", (8, 8), colors[i % len(colors)]) for i in range(frames)]
    buf = BytesIO()
    images[0].save(buf, format="GIF", save_all=True, append_images=images[1:], duration=40, loop=0)
    return buf.getvalue()


def _rgba_png() -> bytes:
    buf = BytesIO()
    Image.new("RGBA", (4, 4), (10, 20, 30, 128)).save(buf, format="PNG")
    return buf.getvalue()


def _open(data: bytes) -> Image.Image:
    return Image.open(BytesIO(data))


class ImageConverterUnitTests(unittest.TestCase):
    def test_png_to_jpeg_drops_alpha(self):
        result = convert_image(_rgba_png(), "logo.png", "jpeg")

        self.assertEqual(result.file_name, "logo.jpeg")
        img = _open(result.content)
        self.assertEqual(img.format, "JPEG")
        self.assertEqual(img.mode, "RGB")

    def test_jpg_alias_maps_to_jpeg(self):
        result = convert_image(_rgba_png(), "logo.png", "jpg")
        self.assertEqual(_open(result.content).format, "JPEG")

    def test_animation_kept_for_animation_capable_target(self):
        content, frames = convert_image_bytes(_animated_gif(3), "webp")

        self.assertEqual(frames, 3)
        img = _open(content)
        self.assertEqual(img.format, "WEBP")
        self.assertEqual(getattr(img, "n_frames", 1), 3)

    def test_animation_kept_gif_to_gif(self):
        content, frames = convert_image_bytes(_animated_gif(3), "gif")

        self.assertEqual(frames, 3)
        self.assertEqual(getattr(_open(content), "n_frames", 1), 3)

    def test_first_frame_used_for_static_target(self):
        content, frames = convert_image_bytes(_animated_gif(3), "png")

        self.assertEqual(frames, 1)
        img = _open(content)
        self.assertEqual(img.format, "PNG")
        self.assertEqual(getattr(img, "n_frames", 1), 1)

    def test_tiff_output(self):
        result = convert_image(_rgba_png(), "scan.png", "tiff")
        self.assertEqual(_open(result.content).format, "TIFF")
        self.assertEqual(result.file_name, "scan.tiff")

    def test_unreadable_input(self):
        with self.assertRaises(ImageConversionError):
            convert_image(b"definitely not an image", "x.png", "png")

    def test_unsupported_target(self):
        with self.assertRaises(ImageConversionError):
            convert_image(_rgba_png(), "x.png", "bmp")

    def test_output_name_keeps_unicode_stem(self):
        result = convert_image(_rgba_png(), "фото отпуск.png", "webp")
        self.assertEqual(result.file_name, "фото отпуск.webp")


if __name__ == "__main__":
    unittest.main()
