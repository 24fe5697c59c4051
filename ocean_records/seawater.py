"""Seawater properties from the UNESCO 1983 algorithms (EOS-80).

Functions suffixed ``_unesco`` take temperatures on the IPTS-68 scale, as in
the published algorithms. The public wrappers take and return ITS-90.
Pressure is sea pressure in dbar, salinity is practical salinity (PSS-78).

References:
    Fofonoff, N. P. and R. C. Millard Jr, 1983. Algorithms for computation of
    fundamental properties of seawater. UNESCO Technical Papers in Marine
    Science 44.
"""

import numpy as np

T68_FACTOR = 1.00024


def t68_from_t90(temperature):
    """Convert ITS-90 temperature to IPTS-68."""
    return np.asarray(temperature, dtype=float) * T68_FACTOR


def t90_from_t68(temperature):
    """Convert IPTS-68 temperature to ITS-90."""
    return np.asarray(temperature, dtype=float) / T68_FACTOR


def adiabatic_lapse_rate(salinity, temperature, pressure):
    """Adiabatic temperature gradient in degC/dbar (Bryden 1973).

    Args:
        salinity: Practical salinity
        temperature: In-situ temperature, IPTS-68
        pressure: Sea pressure in dbar
    """
    s = np.asarray(salinity, dtype=float)
    t = np.asarray(temperature, dtype=float)
    p = np.asarray(pressure, dtype=float)
    ds = s - 35.0
    return (
        (
            ((-2.1687e-16 * t + 1.8676e-14) * t - 4.6206e-13) * p
            + (
                (2.7759e-12 * t - 1.1351e-10) * ds
                + ((-5.4481e-14 * t + 8.733e-12) * t - 6.7795e-10) * t
                + 1.8741e-8
            )
        )
        * p
        + (-4.2393e-8 * t + 1.8932e-6) * ds
        + ((6.6228e-10 * t - 6.836e-8) * t + 8.5258e-6) * t
        + 3.5803e-5
    )


def theta_unesco(salinity, temperature, pressure, reference_pressure=0.0):
    """Potential temperature on IPTS-68 (Fofonoff 1977, fourth-order Runge-Kutta)."""
    s = np.asarray(salinity, dtype=float)
    t = np.asarray(temperature, dtype=float)
    p = np.asarray(pressure, dtype=float)
    h = np.asarray(reference_pressure, dtype=float) - p

    xk = h * adiabatic_lapse_rate(s, t, p)
    t = t + 0.5 * xk
    q = xk
    p = p + 0.5 * h
    xk = h * adiabatic_lapse_rate(s, t, p)
    t = t + 0.29289322 * (xk - q)
    q = 0.58578644 * xk + 0.121320344 * q
    xk = h * adiabatic_lapse_rate(s, t, p)
    t = t + 1.707106781 * (xk - q)
    q = 3.414213562 * xk - 4.121320344 * q
    p = p + 0.5 * h
    xk = h * adiabatic_lapse_rate(s, t, p)
    return t + (xk - 2.0 * q) / 6.0


def rho_unesco(salinity, temperature, pressure):
    """In-situ density in kg/m^3 from the EOS-80 equation of state.

    Args:
        salinity: Practical salinity
        temperature: In-situ temperature, IPTS-68
        pressure: Sea pressure in dbar
    """
    s = np.asarray(salinity, dtype=float)
    t = np.asarray(temperature, dtype=float)
    p = np.asarray(pressure, dtype=float) / 10.0  # bar
    s15 = s * np.sqrt(s)

    rho_w = 999.842594 + t * (
        6.793952e-2 + t * (-9.095290e-3 + t * (1.001685e-4 + t * (-1.120083e-6 + t * 6.536332e-9)))
    )
    rho_0 = (
        rho_w
        + s * (0.824493 + t * (-4.0899e-3 + t * (7.6438e-5 + t * (-8.2467e-7 + t * 5.3875e-9))))
        + s15 * (-5.72466e-3 + t * (1.0227e-4 - t * 1.6546e-6))
        + 4.8314e-4 * s * s
    )

    # Secant bulk modulus
    k_w = 19652.21 + t * (148.4206 + t * (-2.327105 + t * (1.360477e-2 - t * 5.155288e-5)))
    k_0 = (
        k_w
        + s * (54.6746 + t * (-0.603459 + t * (1.09987e-2 - t * 6.1670e-5)))
        + s15 * (7.944e-2 + t * (1.6483e-2 - t * 5.3009e-4))
    )
    a_w = 3.239908 + t * (1.43713e-3 + t * (1.16092e-4 - t * 5.77905e-7))
    a = a_w + s * (2.2838e-3 + t * (-1.0981e-5 - t * 1.6078e-6)) + 1.91075e-4 * s15
    b_w = 8.50935e-5 + t * (-6.12293e-6 + t * 5.2787e-8)
    b = b_w + s * (-9.9348e-7 + t * (2.0816e-8 + t * 9.1697e-10))
    k = k_0 + p * (a + p * b)

    return rho_0 / (1.0 - p / k)


def potential_temperature(salinity, temperature, pressure, reference_pressure=0.0):
    """Potential temperature (ITS-90) referenced to ``reference_pressure`` dbar."""
    theta68 = theta_unesco(salinity, t68_from_t90(temperature), pressure, reference_pressure)
    return t90_from_t68(theta68)


def density(salinity, temperature, pressure):
    """In-situ density in kg/m^3 for an ITS-90 temperature."""
    return rho_unesco(salinity, t68_from_t90(temperature), pressure)


def sigma_theta(salinity, theta):
    """Potential density anomaly (kg/m^3) from potential temperature referenced to the surface."""
    return rho_unesco(salinity, t68_from_t90(theta), 0.0) - 1000.0


def depth_from_pressure(pressure, latitude=45.0):
    """Depth in metres from sea pressure (Saunders and Fofonoff 1976).

    Args:
        pressure: Sea pressure in dbar
        latitude: Latitude in degrees north
    """
    p = np.asarray(pressure, dtype=float)
    x = np.sin(np.radians(np.asarray(latitude, dtype=float))) ** 2
    gravity = 9.780318 * (1.0 + (5.2788e-3 + 2.36e-5 * x) * x) + 1.092e-6 * p
    return (((-1.82e-15 * p + 2.279e-10) * p - 2.2512e-5) * p + 9.72659) * p / gravity
