import gc

import numpy as np

from monitor import experiment
from pagerank import DECAY, EPSILON, LIMIT, PageRankAnalyzer
from webgraph import Webpage

# ================== 实验配置 ==================
N_PAGES = 20000
AVG_LINKS = 8
DANGLING_RATIO = 0.1
EXTERNAL_RATIO = 0.05
BLOCK_SIZES = [None, 10000, 1000, 100]
SEED = 42


def random_pages(n=N_PAGES, avg_links=AVG_LINKS, seed=SEED):
    """Random page collection with dangling pages and links leaving the collection"""
    rng = np.random.default_rng(seed)
    uris = [f"http://example.com/{i}" for i in range(n)]
    pages = []
    for i, uri in enumerate(uris):
        if rng.random() < DANGLING_RATIO:
            pages.append(Webpage(uri, ()))
            continue
        targets = rng.integers(0, n, size=rng.poisson(avg_links))
        links = [uris[t] for t in targets]
        links += [f"http://elsewhere.org/{i}"] * int(rng.random() < EXTERNAL_RATIO)
        pages.append(Webpage(uri, tuple(links)))
    return pages


def pagerank_experiment(pages, block_size):
    @experiment(f"block_size={block_size}")
    def run():
        analyzer = PageRankAnalyzer(pages, decay=DECAY, epsilon=EPSILON, limit=LIMIT, block_size=block_size)
        return {"iterations": analyzer.iterations, "ranks": analyzer.ranks}

    return run()


def run_experiments(pages):
    results = []
    for block_size in BLOCK_SIZES:
        res = pagerank_experiment(pages, block_size)
        results.append(res)
        gc.collect()

    base = np.array(list(results[0]["result"]["ranks"].values()))
    print(f"\n{' PageRank block experiment ':-^72}")
    print(f"{'method':<20} | {'time(s)':>8} | {'memory(MB)':>10} | {'iters':>5} | {'max diff':>10}")
    print("-" * 72)
    for res in results:
        ranks = np.array(list(res["result"]["ranks"].values()))
        diff = np.abs(ranks - base).max()
        print(f"{res['name']:<20} | {res['time']:>8.3f} | {res['memory']:>10.2f} | {res['result']['iterations']:>5} | {diff:>10.2e}")
    return results


if __name__ == "__main__":
    run_experiments(random_pages())
