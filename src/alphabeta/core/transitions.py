"""
Generational transition matrix for the three methylation states.

States are ordered UU, UM, MM (both alleles unmethylated, one of each,
both methylated). Row i holds the probabilities of moving from state i to
every state within one generation, given a per-allele gain rate alpha and
loss rate beta.
"""

import numpy as np

from alphabeta.errors import InvalidInputError, SingularMatrixError

N_STATES = 3
UU, UM, MM = 0, 1, 2


def generation_matrix(alpha: float, beta: float) -> np.ndarray:
    """
    Build the one-generation transition matrix.

    Args:
        alpha: Probability of gaining methylation per allele and generation
        beta: Probability of losing methylation per allele and generation

    Returns:
        3×3 row-stochastic matrix (rows: from UU/UM/MM, columns: to UU/UM/MM).
        Out-of-range rates give inf or nan entries.
    """
    alpha, beta = np.float64(alpha), np.float64(beta)
    return np.array([
        [
            (1.0 - alpha) ** 2,
            2.0 * (1.0 - alpha) * alpha,
            alpha ** 2,
        ],
        [
            0.25 * (beta + 1.0 - alpha) ** 2,
            0.5 * (beta + 1.0 - alpha) * (alpha + 1.0 - beta),
            0.25 * (alpha + 1.0 - beta) ** 2,
        ],
        [
            beta ** 2,
            2.0 * (1.0 - beta) * beta,
            (1.0 - beta) ** 2,
        ],
    ])


def _invert(matrix: np.ndarray) -> np.ndarray:
    try:
        inverse = np.linalg.inv(matrix)
    except np.linalg.LinAlgError as e:
        raise SingularMatrixError(f"Matrix is not invertible: {e}") from e

    if not np.all(np.isfinite(inverse)):
        raise SingularMatrixError("Matrix inverse contains non-finite values")
    return inverse


def matrix_power(matrix: np.ndarray, power: int) -> np.ndarray:
    """
    Raise a square matrix to an integer power.

    Generation differences are small, so the power is computed by plain
    repeated multiplication. Negative powers invert the matrix first.

    Args:
        matrix: Square matrix
        power: Integer exponent (may be negative)

    Returns:
        matrix ** power

    Raises:
        InvalidInputError: If the matrix is not square
        SingularMatrixError: If power < 0 and the matrix cannot be inverted
    """
    matrix = np.asarray(matrix, dtype=float)
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise InvalidInputError(f"Expected a square matrix, got shape {matrix.shape}")

    power = int(power)
    if power < 0:
        return matrix_power(_invert(matrix), -power)

    if power == 0:
        return np.eye(matrix.shape[0])

    result = matrix.copy()
    for _ in range(1, power):
        result = result @ matrix
    return result


def power_stack(matrix: np.ndarray, max_power: int) -> np.ndarray:
    """
    All non-negative powers of a matrix up to max_power.

    Slice k equals matrix_power(matrix, k) exactly: it is produced by the
    same left-to-right chain of multiplications.

    Args:
        matrix: Square matrix
        max_power: Highest exponent needed (>= 0)

    Returns:
        Array of shape (max_power + 1, n, n)
    """
    matrix = np.asarray(matrix, dtype=float)
    if max_power < 0:
        raise InvalidInputError(f"max_power must be non-negative, got {max_power}")

    n = matrix.shape[0]
    stack = np.empty((max_power + 1, n, n))
    stack[0] = np.eye(n)
    if max_power >= 1:
        stack[1] = matrix
    for k in range(2, max_power + 1):
        stack[k] = stack[k - 1] @ matrix
    return stack
