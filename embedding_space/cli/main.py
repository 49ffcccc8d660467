from __future__ import annotations

import contextlib
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from ..infrastructure.logging import get_logger
from ..infrastructure.config import default_top_k, min_frequency
from ..infrastructure.parallel import ParallelRangeExecutor, time_execution
from ..domain.models import ScoredTerm
from ..domain.store import EmbeddingStore
from ..application.dto import AnalogyRequest, FilterRequest, LoadRequest, QueryResponse, SimilarRequest
from ..application.similarity import SimilarityEngine
from ..application.use_cases.filter_store import FilterStoreUseCase
from ..application.use_cases.load_store import LoadStoreUseCase
from ..application.use_cases.query_similar import QuerySimilarUseCase
from ..application.use_cases.solve_analogy import SolveAnalogyUseCase, describe_analogy
from .parsers import build_parser

logger = get_logger("embedding_space.cli")


def _parse_dotenv(dotenv_path: Path) -> Dict[str, str]:
    """Parse a simple .env file (KEY=VALUE per line, '#' comments, quotes stripped)."""
    env: Dict[str, str] = {}
    if dotenv_path.exists():
        with contextlib.suppress(Exception):
            for raw in dotenv_path.read_text(encoding="utf-8", errors="ignore").splitlines():
                s = raw.strip()
                if not s or s.startswith("#") or "=" not in s:
                    continue
                k, v = s.split("=", 1)
                k = k.strip()
                v = v.strip().strip('"').strip("'")
                if k:
                    env[k] = v
    return env


def _env_get(key: str) -> Optional[str]:
    """Get environment value from process env, falling back to .env in CWD."""
    v = os.getenv(key)
    if v is not None and v.strip():
        return v.strip()
    local = _parse_dotenv(Path(".env"))
    v2 = local.get(key)
    return v2.strip() if v2 is not None and v2.strip() else None


def _resolve_vectors_path(explicit: Optional[str]) -> Path:
    """Resolve the embeddings file from explicit arg or EMBSPACE_VECTORS env/.env."""
    if explicit and str(explicit).strip():
        return Path(str(explicit).strip()).expanduser()
    path = _env_get("EMBSPACE_VECTORS")
    if not path:
        raise ValueError("EMBSPACE_VECTORS not set in environment or .env; set it or pass --vectors")
    return Path(path).expanduser()


def _resolve_vocab_path(explicit: Optional[str]) -> Optional[Path]:
    if explicit and str(explicit).strip():
        return Path(str(explicit).strip()).expanduser()
    path = _env_get("EMBSPACE_VOCAB")
    return Path(path).expanduser() if path else None


def _resolve_k(ns) -> int:
    k = getattr(ns, "k", None)
    return int(k) if k is not None else default_top_k()


def _error(message: str, **extra: Any) -> int:
    print(json.dumps({"status": "error", "error": message, **extra}, indent=2))
    return 2


def _serialize_match(match: ScoredTerm) -> Dict[str, Any]:
    return {"term": match.term, "score": round(float(match.score), 6)}


def _serialize_response(resp: QueryResponse) -> Dict[str, Any]:
    return {
        "query": resp.query,
        "missing": list(resp.missing),
        "result": [_serialize_match(m) for m in resp.results],
    }


def load_store(ns, executor: ParallelRangeExecutor) -> EmbeddingStore:
    """
    Load the embeddings named on the command line.

    Vocab path and minimum frequency fall back to EMBSPACE_VOCAB and
    EMBSPACE_MIN_FREQ when not passed explicitly.

    Raises:
        FileNotFoundError: When the vectors or vocab file does not exist.
    """
    vectors = _resolve_vectors_path(getattr(ns, "vectors", None))
    vocab = _resolve_vocab_path(getattr(ns, "vocab", None))
    if not vectors.exists():
        raise FileNotFoundError(f"Embeddings file '{vectors}' not found")
    if vocab is not None and not vocab.exists():
        raise FileNotFoundError(f"Vocab file '{vocab}' not found")
    min_freq = getattr(ns, "min_freq", None)
    if min_freq is None and vocab is not None:
        min_freq = min_frequency()
    req = LoadRequest(
        vectors_path=str(vectors),
        vocab_path=str(vocab) if vocab is not None else None,
        min_freq=min_freq,
        max_words=int(getattr(ns, "max_words", 0) or 0),
        normalize=bool(getattr(ns, "normalize", True)),
    )
    logger.info("Load request | vectors=%s | vocab=%s | min_freq=%s | max_words=%d", req.vectors_path, req.vocab_path, req.min_freq, req.max_words)
    return LoadStoreUseCase(executor).execute(req)


def run(argv: Optional[Sequence[str]] = None) -> int:
    ap = build_parser()
    ns = ap.parse_args(list(argv or []))
    if not ns.cmd:
        ap.print_help()
        return 2

    try:
        return dispatch_commands(ns)
    except FileNotFoundError as ex:
        return _error(str(ex))
    except Exception as ex:  # keep CLI concise and user-friendly
        print(json.dumps({"status": "error", "error": f"{type(ex).__name__}: {ex}"}))
        return 3


def dispatch_commands(ns, store: Optional[EmbeddingStore] = None) -> int:
    """
    Dispatches CLI commands to the appropriate use case.

    Commands:
    - info: size and dimensionality of the loaded store
    - similar: nearest neighbours of a term
    - best-match: argmax for a term or an analogy vector
    - analogy: ranking for --plus/--minus vector arithmetic
    - filter: keep listed terms and write the reduced store
    - benchmark: time score_all across worker counts

    ``store`` skips loading from disk; the CLI always loads.
    """
    executor = ParallelRangeExecutor(getattr(ns, "threads", None))
    if store is None:
        store = load_store(ns, executor)
    engine = SimilarityEngine(store, executor)

    if ns.cmd == "info":
        return show_info(store)
    if ns.cmd == "similar":
        return similar(ns, engine)
    if ns.cmd == "best-match":
        return best_match(ns, engine)
    if ns.cmd == "analogy":
        return analogy(ns, engine)
    if ns.cmd == "filter":
        return filter_store(ns, store)
    if ns.cmd == "benchmark":
        return benchmark(ns, engine, executor)

    print(json.dumps({"status": "error", "error": f"Unknown command: {ns.cmd}"}))
    return 2


def show_info(store: EmbeddingStore) -> int:
    preview = []
    for term in store.iterate_terms():
        if len(preview) >= 10:
            break
        preview.append(term)
    print(
        json.dumps(
            {
                "status": "ok",
                "terms": store.size(),
                "dimensionality": store.dimensionality(),
                "first_terms": preview,
            },
            indent=2,
        )
    )
    return 0


def similar(ns, engine: SimilarityEngine) -> int:
    """Print the nearest neighbours of --term; exit 2 when the term is unknown."""
    resp = QuerySimilarUseCase(engine).execute(SimilarRequest(term=str(ns.term), k=_resolve_k(ns)))
    if resp.missing:
        return _error(f"Term '{ns.term}' not in dictionary", missing=resp.missing)
    print(json.dumps({"status": "ok", **_serialize_response(resp)}, indent=2))
    return 0


def best_match(ns, engine: SimilarityEngine) -> int:
    """
    Print the single best match for --term, or for the --plus/--minus vector.

    Returns:
        int: 0 on success, 2 when no query was given, the term is unknown, or the store is empty.
    """
    term = getattr(ns, "term", None)
    plus: List[str] = list(getattr(ns, "plus", []) or [])
    minus: List[str] = list(getattr(ns, "minus", []) or [])
    if term:
        vec = engine.store.lookup(str(term))
        if vec is None:
            return _error(f"Term '{term}' not in dictionary", missing=[term])
        match = engine.best_match(vec)
        query = str(term)
        missing: List[str] = []
    elif plus or minus:
        req = AnalogyRequest(positive=tuple(plus), negative=tuple(minus))
        use_case = SolveAnalogyUseCase(engine)
        match = use_case.best_match(req)
        query = describe_analogy(req)
        missing = [t for t in plus + minus if t not in engine.store]
    else:
        return _error("best-match needs --term or at least one --plus/--minus")

    if match is None:
        return _error("Store is empty", query=query)
    print(json.dumps({"status": "ok", "query": query, "missing": missing, "match": match}, indent=2))
    return 0


def analogy(ns, engine: SimilarityEngine) -> int:
    req = AnalogyRequest(positive=tuple(ns.plus or []), negative=tuple(ns.minus or []), k=_resolve_k(ns))
    resp = SolveAnalogyUseCase(engine).execute(req)
    if resp.missing:
        logger.warning("Analogy terms missing | missing=%s", ",".join(resp.missing))
    print(json.dumps({"status": "ok", **_serialize_response(resp)}, indent=2))
    return 0


def _read_keep_file(path: Path) -> List[str]:
    terms: List[str] = []
    for line in path.read_text(encoding="utf-8", errors="ignore").splitlines():
        line = line.strip()
        if line:
            terms.append(line)
    return terms


def filter_store(ns, store: EmbeddingStore) -> int:
    """Keep only terms listed in --keep (one per line) and write the result to --out."""
    keep_path = Path(str(ns.keep)).expanduser()
    if not keep_path.exists():
        return _error(f"Keep file '{keep_path}' not found")
    keep = _read_keep_file(keep_path)
    resp = FilterStoreUseCase(store).execute(FilterRequest(keep=tuple(keep), out_path=str(ns.out)))
    print(
        json.dumps(
            {"status": "ok", "before": resp.before, "after": resp.after, "out": resp.out_path},
            indent=2,
        )
    )
    return 0


def benchmark(ns, engine: SimilarityEngine, executor: ParallelRangeExecutor) -> int:
    """Time one full scoring pass per worker count (best of --repeat runs)."""
    store = engine.store
    rng = np.random.default_rng(int(getattr(ns, "seed", 0) or 0))
    query = rng.standard_normal(store.dimensionality())
    scores = np.zeros(store.size(), dtype=np.float64)
    vector_at = store.vector_at

    def op(i: int) -> None:
        scores[i] = float(np.dot(vector_at(i), query))

    timings: List[Dict[str, Any]] = []
    for workers in ns.workers:
        runs = [time_execution(executor, store.size(), op, int(workers)) for _ in range(max(1, int(ns.repeat)))]
        best = min(runs)
        logger.info("Benchmark | workers=%d | best_seconds=%.6f", workers, best)
        timings.append({"workers": int(workers), "best_seconds": round(best, 6)})
    print(json.dumps({"status": "ok", "terms": store.size(), "timings": timings}, indent=2))
    return 0


def main() -> int:
    import sys
    return run(sys.argv[1:])


if __name__ == "__main__":
    raise SystemExit(main())
