"""Edit-distance helpers used by the typosquatting check."""


def levenshtein(a: str, b: str) -> int:
    """Classic edit distance (insert/delete/substitute, unit cost).

    Rows follow ``b``, columns follow ``a``.
    """
    rows = len(b) + 1
    cols = len(a) + 1
    table = [[0] * cols for _ in range(rows)]
    for i in range(rows):
        table[i][0] = i
    for j in range(cols):
        table[0][j] = j

    for i in range(1, rows):
        for j in range(1, cols):
            if b[i - 1] == a[j - 1]:
                table[i][j] = table[i - 1][j - 1]
            else:
                table[i][j] = min(
                    table[i - 1][j - 1] + 1,  # substitute
                    table[i][j - 1] + 1,      # insert
                    table[i - 1][j] + 1,      # delete
                )
    return table[rows - 1][cols - 1]


def similarity(a: str, b: str) -> float:
    """Normalized similarity in [0, 1]: 1 - distance / length of the longer string.

    Two empty strings are identical (1.0).
    """
    # order the pair so swapped arguments walk the same table
    longer, shorter = (a, b) if len(a) >= len(b) else (b, a)
    if len(a) == len(b) and b > a:
        longer, shorter = b, a
    max_len = len(longer)
    if max_len == 0:
        return 1.0
    return (max_len - levenshtein(longer, shorter)) / max_len
