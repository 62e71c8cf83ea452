import argparse
import os
import sys
import time
from types import MappingProxyType

import numpy as np

from monitor import MemoryMonitor
from webgraph import DATA_FILE, build_graph, index_graph, load_pages

DECAY = 0.85
EPSILON = 0.00015
LIMIT = 50
TOPK = 100
RES_FILE = "Res.txt"


def validate_params(decay, epsilon, limit, block_size=None):
    if not 0.0 <= decay <= 1.0:
        raise ValueError(f"decay must be in [0, 1], got {decay}")
    if not epsilon > 0:
        raise ValueError(f"epsilon must be positive, got {epsilon}")
    if limit < 1:
        raise ValueError(f"limit must be at least 1, got {limit}")
    if block_size is not None and block_size < 1:
        raise ValueError(f"block_size must be positive, got {block_size}")


def iterate(adj, dangling, decay=DECAY, epsilon=EPSILON, limit=LIMIT, block_size=None):
    """
    Damped random-surfer power iteration over a CSC transition matrix.

    Every step allocates a fresh "next" vector: link mass decay*r/outdeg goes
    to each target, dangling mass decay*r/n goes to every page, then the
    teleport term (1-decay)/n is added. Stops as soon as every page moved by
    strictly less than epsilon, otherwise after `limit` steps with the last
    vector as a best-effort answer.

    With block_size the link scatter runs over row blocks of adj, each block
    filling only its own slice of the next vector.
    """
    validate_params(decay, epsilon, limit, block_size)
    n = adj.shape[0]
    mat = adj.tocsr()
    if block_size is None or block_size >= n:
        block_size = n
    blocks = [(start, min(start + block_size, n)) for start in range(0, n, block_size)]

    pr = np.full(n, 1.0 / n, dtype=np.float64)
    teleport = (1 - decay) / n
    dead_nodes = np.where(dangling)[0]

    for it in range(limit):
        dead_sum = pr[dead_nodes].sum()
        pr_next = np.zeros(n, dtype=np.float64)
        for start, end in blocks:
            pr_next[start:end] = mat[start:end, :].dot(pr)
        pr_next *= decay
        pr_next += decay * dead_sum / n
        pr_next += teleport

        # a change of exactly epsilon still counts as moving
        delta = float(np.abs(pr_next - pr).max())
        if delta < epsilon:
            return {"iterations": it + 1, "delta": delta, "converged": True, "pr": pr_next}
        pr = pr_next

    return {"iterations": limit, "delta": delta, "converged": False, "pr": pr_next}


def _rank(graph, decay, epsilon, limit, block_size):
    if not graph:
        validate_params(decay, epsilon, limit, block_size)
        return {}, {"iterations": 0, "delta": 0.0, "converged": True, "pr": np.zeros(0)}
    nodes, adj, dangling = index_graph(graph)
    result = iterate(adj, dangling, decay=decay, epsilon=epsilon, limit=limit, block_size=block_size)
    return dict(zip(nodes, result["pr"].tolist())), result


def solve(graph, decay=DECAY, epsilon=EPSILON, limit=LIMIT, block_size=None) -> dict:
    """Page rank of every uri in an adjacency mapping built by build_graph"""
    ranks, _ = _rank(graph, decay, epsilon, limit, block_size)
    return ranks


def topk_items(ranks, topk=TOPK):
    if topk < 1:
        raise ValueError(f"topk must be at least 1, got {topk}")
    # ties broken by uri so output is stable
    return sorted(ranks.items(), key=lambda item: (-item[1], item[0]))[:topk]


class PageRankAnalyzer:
    """
    Page rank of every page in a closed collection of webpages.

    The link graph only lives for the duration of the constructor; the
    analyzer keeps the final rank mapping and the solver diagnostics.
    """

    def __init__(self, webpages, decay=DECAY, epsilon=EPSILON, limit=LIMIT, block_size=None):
        graph = build_graph(webpages)
        self.dangling_count = sum(1 for links in graph.values() if not links)
        self._ranks, result = _rank(graph, decay, epsilon, limit, block_size)
        self.iterations = result["iterations"]
        self.delta = result["delta"]
        self.converged = result["converged"]

    def __len__(self):
        return len(self._ranks)

    @property
    def ranks(self):
        return MappingProxyType(self._ranks)

    def score(self, uri) -> float:
        """Rank of a page given to the constructor; KeyError for any other uri"""
        return self._ranks[uri]

    def top(self, topk=TOPK):
        return topk_items(self._ranks, topk)


def save_topk(ranks, topk=TOPK, filename=RES_FILE):
    with open(filename, "w", encoding="utf-8") as f:
        f.writelines(f"{uri} {score:.10f}\n" for uri, score in topk_items(ranks, topk))


def main(argv=None):
    parser = argparse.ArgumentParser(description="PageRank of a closed collection of webpages")
    parser.add_argument("--input", default=DATA_FILE, help="Input file path")
    parser.add_argument("--output", default=RES_FILE, help="Output file path")
    parser.add_argument("--format", choices=["pages", "edges"], default="pages", help="'uri link...' per line, or 'src dst' edge list")
    parser.add_argument("--decay", type=float, default=DECAY, help="Damping factor")
    parser.add_argument("--epsilon", type=float, default=EPSILON, help="Convergence threshold")
    parser.add_argument("--limit", type=int, default=LIMIT, help="Maximum iterations")
    parser.add_argument("--topk", type=int, default=TOPK, help="Number of pages written to output")
    parser.add_argument("--block_size", type=int, default=None, help="Row block size of the link scatter")
    args = parser.parse_args(argv)
    if args.topk < 1:
        parser.error(f"--topk must be at least 1, got {args.topk}")
    if args.block_size is not None and args.block_size < 1:
        parser.error(f"--block_size must be positive, got {args.block_size}")

    if not os.path.exists(args.input):
        print(f"Input file not found: {args.input}")
        return 1

    monitor = MemoryMonitor()
    monitor.start()
    t_start = time.time()
    try:
        pages = load_pages(args.input, fmt=args.format)
        t_calc = time.time()
        analyzer = PageRankAnalyzer(pages, decay=args.decay, epsilon=args.epsilon, limit=args.limit, block_size=args.block_size)
        print(f"Total pages: {len(analyzer)}, dangling pages: {analyzer.dangling_count}")
        if analyzer.converged:
            print(f"Converged at {analyzer.iterations} iterations, delta={analyzer.delta:.2e}")
        else:
            print(f"Stopped at limit of {analyzer.iterations} iterations, delta={analyzer.delta:.2e}")
        print(f"PageRank computed in {time.time() - t_calc:.2f}s")
        save_topk(analyzer.ranks, topk=args.topk, filename=args.output)
    finally:
        monitor.stop()
        monitor.join()

    print(f"Peak memory: {monitor.peak_mb:.2f} MB")
    print(f"Total elapsed time: {time.time() - t_start:.2f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
