"""
Text rendering of matrices.

format_matrix() lays a matrix out in aligned columns between bracket
glyphs:

    ⎡1  2⎤
    ⎣3  4⎦

Single-row matrices use plain square brackets. With a margin, only the
first and last margin rows/columns are shown and a Dims(r, c) header
is printed above the elided matrix.
"""

import math
import re
from typing import Any

import numpy as np

from pydense.core.protocols import Matrix


VERBS = frozenset('veEfFgG')

_SPEC = re.compile(
    r'^(?P<flags>[#\-]*)(?P<width>\d+)?(?:\.(?P<precision>\d+))?(?P<verb>[A-Za-z])?$'
)


def format_float(v: float, verb: str, precision: int) -> str:
    """
    Format one element.

    A negative precision selects the shortest representation that reads
    back to the same float64.
    """
    if math.isnan(v):
        return 'NaN'
    if math.isinf(v):
        return '+Inf' if v > 0 else '-Inf'
    upper = verb in 'EG'
    verb = verb.lower()
    if precision >= 0:
        text = format(v, f'.{precision}{verb}')
    elif verb == 'f':
        text = np.format_float_positional(v, unique=True, trim='-')
    elif verb == 'e':
        text = np.format_float_scientific(v, unique=True, trim='-', exp_digits=2)
    else:
        exp = _decimal_exponent(v)
        if exp < -4 or exp >= 6:
            text = np.format_float_scientific(v, unique=True, trim='-', exp_digits=2)
        else:
            text = np.format_float_positional(v, unique=True, trim='-')
    return text.upper() if upper else text


def _decimal_exponent(v: float) -> int:
    if v == 0:
        return 0
    digits = np.format_float_scientific(v, unique=True, exp_digits=1)
    return int(digits.rsplit('e', 1)[1])


def _skip_row(i: int, rows: int, printed: int) -> bool:
    return printed - 1 <= i < rows - printed and 2 * printed < rows


def format_matrix(
    m: Matrix,
    verb: str = 'g',
    precision: int = -1,
    width: int = 0,
    margin: int = 0,
    dot: str = '.',
    zero_dot: bool = False,
    left_align: bool = False,
) -> str:
    """
    Render m as aligned text.

    Args:
        m: Matrix to render
        verb: One of v e E f F g G; 'v' is treated as 'g'
        precision: Digits after the point ('e', 'f') or significant
                   digits ('g'); negative for the shortest exact form
        width: Minimum cell width
        margin: If positive, show only this many leading and trailing
                rows and columns
        dot: Replacement for exact zeros when zero_dot is set
        zero_dot: Print exact zeros as dot
        left_align: Pad cells on the right instead of the left

    Returns:
        The rendered matrix. An unknown verb renders as
        %!<verb>(<type>=Dims(r, c)).
    """
    rows, cols = m.dims()
    printed = margin if margin > 0 else max(rows, cols)

    if verb not in VERBS:
        return f"%!{verb}({type(m).__name__}=Dims({rows}, {cols}))"
    if verb == 'v':
        verb = 'g'

    shown_cols = [j for j in range(cols) if not printed <= j < cols - printed]
    max_width = 0
    for i in range(rows):
        if _skip_row(i, rows, printed):
            continue
        for j in shown_cols:
            max_width = max(max_width, len(format_float(m.at(i, j), verb, precision)))
    width = max(width, max_width)
    gap = ' ' * 2

    out = []
    if rows > 2 * printed or cols > 2 * printed:
        out.append(f"Dims({rows}, {cols})\n")

    i = 0
    while i < rows:
        if rows == 1:
            out.append('[')
            end = ']'
        elif i == 0:
            out.append('⎡')
            end = '⎤\n'
        elif i < rows - 1:
            out.append('⎢')
            end = '⎥\n'
        else:
            out.append('⎣')
            end = '⎦'

        j = 0
        while j < cols:
            if printed <= j < cols - printed:
                j = cols - printed
                if i == 0 or i == rows - 1:
                    out.append('...  ...  ')
                else:
                    out.append(' ' * 10)
                continue

            v = m.at(i, j)
            if v == 0 and zero_dot:
                text = dot
            else:
                text = format_float(v, verb, precision)
            pad = ' ' * (width - len(text))
            out.append(text + pad if left_align else pad + text)
            if j < cols - 1:
                out.append(gap)
            j += 1

        out.append(end)

        if _skip_row(i, rows, printed):
            i = rows - printed
            out.append(' .\n .\n .\n')
            continue
        i += 1

    return ''.join(out)


def parse_format_spec(spec: str) -> dict[str, Any]:
    """
    Translate a format() spec such as '#8.3f' into format_matrix options.

    '#' prints exact zeros as '.', '-' left-aligns cells.

    Raises:
        ValueError: If spec is not of the form [flags][width][.precision][verb]
    """
    match = _SPEC.match(spec)
    if match is None:
        raise ValueError(f"Invalid format specifier '{spec}' for matrix")
    flags = match.group('flags')
    options: dict[str, Any] = {
        'zero_dot': '#' in flags,
        'left_align': '-' in flags,
    }
    if match.group('width'):
        options['width'] = int(match.group('width'))
    if match.group('precision') is not None:
        options['precision'] = int(match.group('precision'))
    if match.group('verb'):
        options['verb'] = match.group('verb')
    return options
