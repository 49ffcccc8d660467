from __future__ import annotations

import argparse


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Embedding space (word2vec vectors + parallel similarity search)")
    sub = ap.add_subparsers(dest="cmd", required=False)

    # Describe the loaded store
    add_store_subparser(sub, "info")

    # Nearest neighbours of a stored term
    sm = add_store_subparser(sub, "similar")
    sm.add_argument("--term", required=True)
    sm.add_argument("--k", type=int, default=None, help="Result count; defaults to $EMBSPACE_TOP_K or 10")

    # Single best match for a term or an analogy vector
    bm = add_store_subparser(sub, "best-match")
    bm.add_argument("--term", required=False, help="Query with a stored term's vector")
    bm.add_argument("--plus", action="append", default=[], help="Term to add; can repeat")
    bm.add_argument("--minus", action="append", default=[], help="Term to subtract; can repeat")

    # Analogy arithmetic: --plus king --plus woman --minus man
    an = add_store_subparser(sub, "analogy")
    an.add_argument("--plus", action="append", default=[], required=True, help="Term to add; can repeat")
    an.add_argument("--minus", action="append", default=[], help="Term to subtract; can repeat")
    an.add_argument("--k", type=int, default=None, help="Result count; defaults to $EMBSPACE_TOP_K or 10")

    # Keep only listed terms and write the reduced store
    ft = add_store_subparser(sub, "filter", normalize_default=False)
    ft.add_argument("--keep", required=True, help="File with one term per line")
    ft.add_argument("--out", required=True, help="Output word2vec binary path (<out>.vocab written when counts are set)")

    # Time score_all across worker counts
    bn = add_store_subparser(sub, "benchmark")
    bn.add_argument("--workers", type=int, nargs="+", default=[1, 2, 4, 8, 20])
    bn.add_argument("--repeat", type=int, default=3)
    bn.add_argument("--seed", type=int, default=0)

    return ap


def add_store_subparser(sub, name, normalize_default=True):
    """
    Adds a subcommand that operates on an embedding file.

    Every such command accepts the same loading options: the vectors path, an
    optional vocab file with frequency cut-off, a record cap, the worker count
    and the normalization switch.

    Args:
        sub: The subparsers object from argparse.
        name: The name of the subcommand to add.
        normalize_default: Whether vectors are normalized unless told otherwise.

    Returns:
        argparse.ArgumentParser: The configured subparser.
    """
    result = sub.add_parser(name)
    result.add_argument(
        "--vectors",
        required=False,
        help="word2vec binary file; defaults to $EMBSPACE_VECTORS",
    )
    result.add_argument("--vocab", required=False, help="Vocab file with '<term> <count>' lines; defaults to $EMBSPACE_VOCAB")
    result.add_argument("--min-freq", type=int, default=None, help="Stop loading at the first vocab count below this")
    result.add_argument("--max-words", type=int, default=0)
    result.add_argument("--threads", type=int, default=None, help="Worker threads; defaults to $EMBSPACE_THREADS or 20")
    if normalize_default:
        result.add_argument("--no-normalize", dest="normalize", action="store_false", default=True)
    else:
        result.add_argument("--normalize", dest="normalize", action="store_true", default=False)

    return result
