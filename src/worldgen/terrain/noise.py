"""Noise generation functions for terrain generation.

Provides fBm (fractal Brownian motion) and ridged multifractal noise sampled
on a cylinder: the X axis is a circle whose circumference equals the map
width, so every field is continuous across the left/right seam. Y is an
open interval and is filtered with reflection at the top and bottom edges.
"""

import numpy as np
from numpy.typing import NDArray
from scipy import ndimage

# scipy.ndimage modes per axis: (Y, X)
_CYLINDER_MODES = ("reflect", "wrap")

# Smoothed fields with less spread than this are rounding noise on a constant
MIN_NOISE_STD = 1e-6


def _gaussian_noise_2d(
    width: int,
    height: int,
    rng: np.random.Generator,
    wavelength: float,
) -> NDArray[np.float32]:
    """Generate smooth cylindrical noise using a Gaussian filter on a random field.

    Uses FFT-based filtering for large sigmas for better performance.

    Args:
        width: Output width (circumference of the cylinder).
        height: Output height.
        rng: Random number generator.
        wavelength: Approximate wavelength of features in tiles.

    Returns:
        2D noise array in range roughly [-1, 1].
    """
    white_noise = rng.standard_normal((height, width)).astype(np.float32)

    # sigma proportional to wavelength
    sigma = wavelength / 3.0

    # FFT filtering is faster for sigma > ~30
    if sigma > 30:
        smoothed = _fft_gaussian_filter(white_noise, sigma)
    else:
        smoothed = ndimage.gaussian_filter(white_noise, sigma=sigma, mode=_CYLINDER_MODES)

    # Normalize to roughly [-1, 1]; a field flattened to a constant stays flat
    std = np.std(smoothed)
    if std > MIN_NOISE_STD:
        smoothed /= (2.5 * std)

    return smoothed


def _fft_gaussian_filter(
    data: NDArray[np.float32],
    sigma: float,
) -> NDArray[np.float32]:
    """Apply a cylindrical Gaussian filter using FFT.

    The FFT is periodic on both axes. X is periodic already; Y is padded
    with a mirrored copy first so the top and bottom edges do not bleed
    into each other, then cropped back.

    Args:
        data: Input 2D array.
        sigma: Gaussian sigma.

    Returns:
        Filtered array.
    """
    from scipy.fft import fft2, fftfreq, ifft2

    height = data.shape[0]
    pad = min(height, int(np.ceil(3.0 * sigma)))
    padded = np.pad(data, ((pad, pad), (0, 0)), mode="symmetric")
    padded_height, width = padded.shape

    fy = fftfreq(padded_height)
    fx = fftfreq(width)
    fx_grid, fy_grid = np.meshgrid(fx, fy)

    # FFT of Gaussian with sigma is Gaussian with 1/(2*pi*sigma)
    freq_sigma = 1.0 / (2.0 * np.pi * sigma)
    gaussian_freq = np.exp(-0.5 * (fx_grid**2 + fy_grid**2) / (freq_sigma**2))

    filtered_fft = fft2(padded) * gaussian_freq
    result = np.real(ifft2(filtered_fft))

    return result[pad:pad + height].astype(np.float32)


def fbm_noise_cylindrical(
    width: int,
    height: int,
    seed: int,
    frequency: float,
    octaves: int = 6,
    lacunarity: float = 2.0,
    persistence: float = 0.5,
) -> NDArray[np.float32]:
    """Generate fractal Brownian motion noise wrapped around the X axis.

    Sums multiple octaves of noise at increasing frequencies
    and decreasing amplitudes for natural-looking variation.

    Args:
        width: Output width in tiles.
        height: Output height in tiles.
        seed: Random seed for noise generation.
        frequency: Base frequency in cycles per tile.
        octaves: Number of noise layers to sum.
        lacunarity: Frequency multiplier between octaves.
        persistence: Amplitude multiplier between octaves.

    Returns:
        2D array of noise values, roughly in range [-1, 1].
    """
    result = np.zeros((height, width), dtype=np.float32)

    wavelength = 1.0 / frequency
    amplitude = 1.0
    max_amplitude = 0.0

    for i in range(octaves):
        octave_rng = np.random.default_rng(seed + i * 1000)
        octave_noise = _gaussian_noise_2d(width, height, octave_rng, wavelength)
        result += amplitude * octave_noise
        max_amplitude += amplitude
        wavelength /= lacunarity
        amplitude *= persistence

    if max_amplitude > 0:
        result /= max_amplitude
    return result


def ridged_multifractal_cylindrical(
    width: int,
    height: int,
    seed: int,
    frequency: float,
    octaves: int = 4,
    lacunarity: float = 2.0,
    persistence: float = 0.5,
    offset: float = 1.0,
) -> NDArray[np.float32]:
    """Generate ridged multifractal noise wrapped around the X axis.

    Creates sharp ridges by taking absolute value and inverting,
    useful for mountain ranges.

    Args:
        width: Output width in tiles.
        height: Output height in tiles.
        seed: Random seed for noise generation.
        frequency: Base frequency in cycles per tile.
        octaves: Number of noise layers.
        lacunarity: Frequency multiplier between octaves.
        persistence: Amplitude multiplier between octaves.
        offset: Value subtracted from absolute noise (controls ridge sharpness).

    Returns:
        2D array of noise values, roughly in range [0, 1].
    """
    result = np.zeros((height, width), dtype=np.float32)

    wavelength = 1.0 / frequency
    amplitude = 1.0
    weight = np.ones((height, width), dtype=np.float32)
    max_value = 0.0

    for i in range(octaves):
        octave_rng = np.random.default_rng(seed + 500 + i * 1000)
        raw_noise = _gaussian_noise_2d(width, height, octave_rng, wavelength)

        # Convert to ridge: offset - |noise|, then square
        signal = offset - np.abs(raw_noise)
        signal = signal * signal
        signal *= weight

        result += signal * amplitude

        # Sharp ridges suppress detail in the valleys of the next octave
        weight = np.clip(signal * 2.0, 0.0, 1.0)

        max_value += amplitude
        wavelength /= lacunarity
        amplitude *= persistence

    if max_value > 0:
        result /= max_value
    return result


def normalize_unit(field: NDArray[np.float32], min_range: float = 1e-4) -> NDArray[np.float32]:
    """Min/max normalize a field to [0, 1].

    A field whose range is below ``min_range`` maps to all zeros.
    """
    low = float(field.min())
    span = float(field.max()) - low
    if span < min_range:
        return np.zeros_like(field)
    return ((field - low) / span).astype(np.float32)
