"""
Audio codec utilities for the realtime session client.

Conversions between float32 sample buffers and the little-endian PCM16 mono
layout used on the wire, base64 helpers for audio content parts, and a
minimal RIFF/WAVE container writer.
"""

import asyncio
import base64
import logging
import struct
from pathlib import Path
from typing import Sequence, Union

import numpy as np

from realtime_session.config.constants import (
    BASE64_CHUNK_SIZE,
    DEFAULT_BITS_PER_SAMPLE,
)
from realtime_session.config.models import AudioConfig

logger = logging.getLogger(__name__)

PCMInput = Union[bytes, bytearray, memoryview, np.ndarray]


class AudioUtils:
    """Shared audio utility functions."""

    @staticmethod
    def float_to_pcm16(samples: Union[Sequence[float], np.ndarray]) -> bytes:
        """
        Convert float samples to little-endian PCM16 bytes.

        Each sample is clamped to [-1.0, 1.0]; negative values are scaled by
        32768 and non-negative values by 32767, then truncated toward zero.

        Args:
            samples: Float samples, nominally in [-1.0, 1.0]

        Returns:
            bytes: PCM16 little-endian mono data (2 bytes per sample)
        """
        array = np.asarray(samples, dtype=np.float32)
        if array.size == 0:
            return b""

        clamped = np.clip(array, -1.0, 1.0)
        scaled = np.where(clamped < 0, clamped * 32768.0, clamped * 32767.0)
        return np.trunc(scaled).astype("<i2").tobytes()

    @staticmethod
    def pcm16_to_float(pcm_bytes: bytes) -> np.ndarray:
        """
        Convert PCM16 little-endian mono bytes back to float32 samples.

        Uses the inverse of the asymmetric scaling in ``float_to_pcm16``.
        A trailing odd byte is dropped.
        """
        if len(pcm_bytes) % 2 != 0:
            pcm_bytes = pcm_bytes[: len(pcm_bytes) - 1]

        audio_i16 = np.frombuffer(pcm_bytes, dtype="<i2").astype(np.float32)
        return np.where(audio_i16 < 0, audio_i16 / 32768.0, audio_i16 / 32767.0).astype(
            np.float32
        )

    @staticmethod
    def pcm16_to_base64(pcm_bytes: bytes) -> str:
        """
        Base64-encode PCM16 data as one contiguous string without line breaks.

        Large buffers are encoded chunk by chunk.
        """
        view = memoryview(pcm_bytes)
        parts = [
            base64.b64encode(view[i : i + BASE64_CHUNK_SIZE]).decode("ascii")
            for i in range(0, len(view), BASE64_CHUNK_SIZE)
        ]
        return "".join(parts)

    @staticmethod
    def base64_to_pcm16(base64_data: str) -> bytes:
        """
        Decode a base64 audio payload to raw PCM16 bytes.

        Raises:
            ValueError: If the payload is not valid base64
        """
        try:
            return base64.b64decode(base64_data, validate=True)
        except (ValueError, TypeError) as e:
            raise ValueError(f"Invalid base64 audio payload: {e}") from e

    @staticmethod
    def base64_encode_audio(samples: Union[Sequence[float], np.ndarray]) -> str:
        """Convert float samples straight to base64-encoded PCM16."""
        return AudioUtils.pcm16_to_base64(AudioUtils.float_to_pcm16(samples))

    @staticmethod
    def _as_pcm_bytes(audio_data: PCMInput) -> bytes:
        if isinstance(audio_data, np.ndarray):
            return audio_data.astype("<i2").tobytes()
        return bytes(audio_data)

    @staticmethod
    def create_wav_container(
        audio_data: PCMInput, sample_rate: int, channels: int = 1
    ) -> bytes:
        """
        Wrap PCM16 data in a canonical 44-byte RIFF/WAVE header.

        Args:
            audio_data: PCM16 little-endian bytes (or an int16 numpy array)
            sample_rate: Sample rate in Hz
            channels: Number of interleaved channels. Default: 1

        Returns:
            bytes: Header followed by the PCM data
        """
        pcm = AudioUtils._as_pcm_bytes(audio_data)
        data_size = len(pcm)
        block_align = channels * (DEFAULT_BITS_PER_SAMPLE // 8)
        byte_rate = sample_rate * block_align

        header = bytearray()

        # RIFF header
        header.extend(b"RIFF")
        header.extend(struct.pack("<I", 36 + data_size))  # ChunkSize
        header.extend(b"WAVE")

        # fmt chunk
        header.extend(b"fmt ")
        header.extend(struct.pack("<I", 16))  # Subchunk1Size
        header.extend(struct.pack("<H", 1))  # Audio format (PCM)
        header.extend(struct.pack("<H", channels))
        header.extend(struct.pack("<I", sample_rate))
        header.extend(struct.pack("<I", byte_rate))
        header.extend(struct.pack("<H", block_align))
        header.extend(struct.pack("<H", DEFAULT_BITS_PER_SAMPLE))

        # data chunk
        header.extend(b"data")
        header.extend(struct.pack("<I", data_size))

        return bytes(header) + pcm

    @staticmethod
    def create_wav_for_config(audio_data: PCMInput, audio_config: AudioConfig) -> bytes:
        """Wrap PCM16 data using the sample rate and channel count of ``audio_config``.

        Raises:
            ValueError: If the config asks for a sample width other than 16 bits
        """
        if audio_config.bits_per_sample != DEFAULT_BITS_PER_SAMPLE:
            raise ValueError(
                f"Only {DEFAULT_BITS_PER_SAMPLE}-bit PCM is supported, "
                f"got {audio_config.bits_per_sample}"
            )
        return AudioUtils.create_wav_container(
            audio_data, audio_config.sample_rate, audio_config.channels
        )

    @staticmethod
    def write_wav_file(
        file_path: Union[str, Path],
        audio_data: PCMInput,
        sample_rate: int,
        channels: int = 1,
    ) -> int:
        """
        Write PCM16 data to a WAV file.

        Returns:
            int: Number of bytes written
        """
        wav_bytes = AudioUtils.create_wav_container(audio_data, sample_rate, channels)
        with open(file_path, "wb") as f:
            f.write(wav_bytes)
        logger.info(f"WAV file written to {file_path}")
        return len(wav_bytes)

    @staticmethod
    async def async_write_wav_file(
        file_path: Union[str, Path],
        audio_data: PCMInput,
        sample_rate: int,
        channels: int = 1,
    ) -> int:
        """
        Write PCM16 data to a WAV file without blocking the event loop.

        Produces the same bytes as ``write_wav_file``.
        """
        try:
            return await asyncio.get_running_loop().run_in_executor(
                None,
                AudioUtils.write_wav_file,
                file_path,
                audio_data,
                sample_rate,
                channels,
            )
        except OSError as e:
            logger.error(f"Error writing WAV file: {e}")
            raise

    @staticmethod
    def load_float_samples(file_path: Union[str, Path]) -> np.ndarray:
        """
        Decode an audio file and return its first channel as float32 samples.

        Decoding is delegated to soundfile (libsndfile); only the first
        channel is kept.
        """
        import soundfile as sf

        data, _ = sf.read(str(file_path), dtype="float32", always_2d=True)
        return data[:, 0]

    @staticmethod
    def process_audio_file(file_path: Union[str, Path]) -> str:
        """
        Decode an audio file and return base64-encoded PCM16 data.

        Raises:
            Exception: Whatever the decoder raises for unreadable files
        """
        try:
            samples = AudioUtils.load_float_samples(file_path)
        except Exception as e:
            logger.error(f"Error processing audio file {file_path}: {e}")
            raise
        return AudioUtils.base64_encode_audio(samples)

    @staticmethod
    def calculate_audio_duration(
        audio_data: bytes, sample_rate: int, channels: int = 1
    ) -> float:
        """Duration in seconds of PCM16 data."""
        bytes_per_frame = channels * (DEFAULT_BITS_PER_SAMPLE // 8)
        if sample_rate <= 0 or bytes_per_frame <= 0:
            return 0.0
        return (len(audio_data) // bytes_per_frame) / sample_rate
