from scipy.sparse import coo_matrix


def remove_negative_entries(input_matrix):
    r"""Remove all negative entries from sparse matrix.

    Parameters
    ----------
    input_matrix : (M, M) scipy.sparse matrix
        Input matrix

    Returns
    -------
    non_negative_mat : (M, M) scipy.sparse matrix
        Input matrix with negative entries set to zero.
    """
    input_matrix = input_matrix.tocoo()

    data = input_matrix.data
    row = input_matrix.row
    col = input_matrix.col

    pos = data > 0.0
    datap = data[pos]
    rowp = row[pos]
    colp = col[pos]
    return coo_matrix((datap, (rowp, colp)), shape=input_matrix.shape)


def remove_entries(input_matrix, mask):
    r"""Drop all stored entries of a sparse matrix for which the boolean mask is set.

    Parameters
    ----------
    input_matrix : (M, M) scipy.sparse matrix
        Input matrix
    mask : (M, M) scipy.sparse matrix of bool
        Entries to drop, typically the result of an elementwise comparison on sparse matrices.

    Returns
    -------
    pruned : (M, M) scipy.sparse.csr_matrix
        Copy of the input without the masked entries and without explicit zeros.
    """
    pruned = input_matrix.tocsr(copy=True)
    pruned = pruned - pruned.multiply(mask)
    pruned = pruned.tocsr()
    pruned.eliminate_zeros()
    return pruned
