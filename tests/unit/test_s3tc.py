"""Tests for the S3TC block codecs."""

import numpy as np
import pytest

from texfab import s3tc
from texfab.color import pack_565, unpack_565
from texfab.dimensions import Dimensions
from texfab.errors import FormatError
from texfab.format import RGBA8, S3TCFormat
from texfab.s3tc import BC1Block, BC2Block, BC3Block, BC4Block, BC5Block

RED_565 = 0xF800
BLUE_565 = 0x001F


def solid(rgba: tuple, height: int = 4, width: int = 4) -> np.ndarray:
    return np.broadcast_to(np.array(rgba, dtype=np.uint8), (height, width, len(rgba))).copy()


class TestColor:
    def test_unpack_replicates_bits(self) -> None:
        assert unpack_565(0xFFFF).tolist() == [255, 255, 255]
        assert unpack_565(0x0000).tolist() == [0, 0, 0]
        assert unpack_565(RED_565).tolist() == [255, 0, 0]
        # r5 = 0b10000 -> 0b10000100
        assert unpack_565(0x8000).tolist() == [132, 0, 0]

    def test_pack_round_trips_565_values(self) -> None:
        values = np.array([0x0000, 0xFFFF, RED_565, BLUE_565, 0x07E0, 0x1234], dtype=np.uint16)
        assert pack_565(unpack_565(values)).tolist() == values.tolist()


class TestBC1:
    """Tests for BC1 block layout and palettes."""

    BLOCK = bytes([0x00, 0xF8, 0x1F, 0x00, 0xE4, 0x00, 0x00, 0x00])

    def test_layout(self) -> None:
        block = BC1Block.from_bytes(self.BLOCK)
        assert block.color0 == RED_565
        assert block.color1 == BLUE_565
        assert block.codes[0].tolist() == [0, 1, 2, 3]
        assert block.codes[1:].sum() == 0
        assert block.to_bytes() == self.BLOCK

    def test_four_color_palette(self) -> None:
        pixels = BC1Block.from_bytes(self.BLOCK).decode()
        assert pixels.shape == (4, 4, 4)
        assert pixels[0].tolist() == [
            [255, 0, 0, 255],
            [0, 0, 255, 255],
            [170, 0, 85, 255],
            [85, 0, 170, 255],
        ]
        assert pixels[3, 3].tolist() == [255, 0, 0, 255]

    def test_three_color_palette(self) -> None:
        block = BC1Block(BLUE_565, RED_565)
        assert block.is_three_color
        palette = block.palette()
        assert palette[2].tolist() == [127, 0, 127, 255]
        assert palette[3].tolist() == [0, 0, 0, 0]

    def test_forced_four_color(self) -> None:
        block = BC1Block(BLUE_565, RED_565)
        assert block.palette(force_four_color=True)[3].tolist() == [85, 0, 170, 255]

    def test_wrong_size(self) -> None:
        with pytest.raises(ValueError):
            BC1Block.from_bytes(b"\x00" * 7)

    def test_encode_solid(self) -> None:
        block = BC1Block.encode(solid((255, 0, 0)))
        assert block.decode()[..., :3].reshape(-1, 3).tolist() == [[255, 0, 0]] * 16

    def test_encode_two_colors_is_exact(self) -> None:
        pixels = solid((255, 0, 0))
        pixels[:, 2:] = (0, 0, 255)
        block = BC1Block.encode(pixels)
        assert not block.is_three_color
        assert np.array_equal(block.decode()[..., :3], pixels)


class TestBC4:
    """Tests for BC4 single channel blocks."""

    def test_code_layout(self) -> None:
        codes = np.arange(8, dtype=np.uint8).repeat(2).reshape(4, 4)
        block = BC4Block(200, 100, codes)
        data = block.to_bytes()
        assert data[:2] == bytes([200, 100])
        packed = int.from_bytes(data[2:], "little")
        assert [(packed >> (3 * i)) & 7 for i in range(16)] == codes.reshape(16).tolist()
        assert np.array_equal(BC4Block.from_bytes(data).codes, codes)

    def test_eight_value_palette(self) -> None:
        palette = BC4Block(200, 100).palette()
        assert palette.tolist() == [200, 100, 186, 171, 157, 143, 129, 114]

    def test_six_value_palette(self) -> None:
        palette = BC4Block(100, 200).palette()
        assert palette.tolist() == [100, 200, 120, 140, 160, 180, 0, 255]

    def test_signed_endpoints_clamp(self) -> None:
        block = BC4Block(0x80, 0x7F)
        assert block.endpoints(signed=True) == (-127, 127)
        palette = block.palette(signed=True)
        assert palette.dtype == np.int8
        assert palette[6] == -127
        assert palette[7] == 127

    def test_encode_gradient(self) -> None:
        values = np.linspace(0, 255, 16).round().astype(np.uint8).reshape(4, 4)
        decoded = BC4Block.encode(values).decode().astype(int)
        assert np.abs(decoded - values.astype(int)).max() <= 19

    def test_encode_constant(self) -> None:
        block = BC4Block.encode(np.full((4, 4), 42))
        assert block.decode().tolist() == [[42] * 4] * 4


class TestCompositeBlocks:
    def test_bc2_alpha_layout(self) -> None:
        alpha = np.arange(16, dtype=np.uint8).reshape(4, 4)
        block = BC2Block(alpha, BC1Block(RED_565, RED_565))
        data = block.to_bytes()
        assert len(data) == 16
        assert data[0] == 0x10  # pixels 0 and 1
        decoded = BC2Block.from_bytes(data).decode()
        assert decoded[..., 3].reshape(16).tolist() == [a * 17 for a in range(16)]

    def test_bc3_alpha_first(self) -> None:
        block = BC3Block(BC4Block(255, 0), BC1Block(RED_565, BLUE_565))
        data = block.to_bytes()
        assert data[:2] == bytes([255, 0])
        assert data[8:10] == bytes([0x00, 0xF8])
        decoded = BC3Block.from_bytes(data).decode()
        assert decoded[0, 0].tolist() == [255, 0, 0, 255]

    def test_bc5_two_channels(self) -> None:
        pixels = np.zeros((4, 4, 2), dtype=np.uint8)
        pixels[..., 0] = 10
        pixels[..., 1] = 250
        decoded = BC5Block.from_bytes(BC5Block.encode(pixels).to_bytes()).decode()
        assert decoded.shape == (4, 4, 2)
        assert np.array_equal(decoded, pixels)


class TestSurfaces:
    """Tests for whole-surface encode and decode."""

    def test_bc1_non_multiple_of_four(self) -> None:
        pixels = solid((0, 255, 0, 255), height=5, width=6)
        fmt = S3TCFormat.bc1()
        data = s3tc.encode(pixels, fmt)
        assert len(data) == fmt.size_for(Dimensions(6, 5)) == 2 * 2 * 8
        decoded = s3tc.decode(data, Dimensions(6, 5), fmt)
        assert decoded.shape == (5, 6, 4)
        assert np.array_equal(decoded, pixels)

    def test_bc4_output_shape(self) -> None:
        fmt = S3TCFormat.bc4()
        data = s3tc.encode(np.full((8, 8), 7, dtype=np.uint8), fmt)
        decoded = s3tc.decode(data, Dimensions(8, 8), fmt)
        assert decoded.shape == (8, 8)
        assert (decoded == 7).all()

    def test_signed_bc5_decodes_int8(self) -> None:
        fmt = S3TCFormat.bc5(signed=True)
        pixels = np.full((4, 4, 2), -50, dtype=np.int16)
        decoded = s3tc.decode(s3tc.encode(pixels, fmt), Dimensions(4, 4), fmt)
        assert decoded.dtype == np.int8
        assert (decoded == -50).all()

    def test_volume_stacks_slices(self) -> None:
        fmt = S3TCFormat.bc1()
        slice_data = s3tc.encode(solid((255, 255, 255, 255)), fmt)
        decoded = s3tc.decode(slice_data * 3, Dimensions(4, 4, 3), fmt)
        assert decoded.shape == (3, 4, 4, 4)

    def test_rejects_uncompressed_format(self) -> None:
        with pytest.raises(FormatError):
            s3tc.decode(b"", Dimensions(4, 4), RGBA8)
