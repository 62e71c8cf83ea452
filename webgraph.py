from collections import namedtuple

import numpy as np
from scipy.sparse import csc_matrix

DATA_FILE = "Data.txt"

Webpage = namedtuple("Webpage", ["uri", "links"])


def build_graph(pages) -> dict:
    """Build a self-contained adjacency mapping uri -> frozenset of linked uris"""
    pages = list(pages)
    uris = set()
    for page in pages:
        if page.uri in uris:
            raise ValueError(f"duplicate page uri: {page.uri}")
        uris.add(page.uri)

    graph = {}
    for page in pages:
        out = set()
        for link in page.links:
            # drop self-links and links leaving the collection
            if link != page.uri and link not in out and link in uris:
                out.add(link)
        graph[page.uri] = frozenset(out)
    return graph


def index_graph(graph):
    """
    Convert the adjacency mapping into numeric form for the solver.

    Returns (nodes, adj, dangling): nodes is the sorted uri list, adj a CSC
    transition matrix with adj[dst, src] = 1/outdegree(src), dangling a mask of
    pages without outgoing links.
    """
    nodes = sorted(graph)
    n = len(nodes)
    node_to_idx = {uri: idx for idx, uri in enumerate(nodes)}

    src, dst = [], []
    for uri in nodes:
        u = node_to_idx[uri]
        for link in sorted(graph[uri]):
            src.append(u)
            dst.append(node_to_idx[link])
    src = np.asarray(src, dtype=np.int64)
    dst = np.asarray(dst, dtype=np.int64)

    out_degree = np.bincount(src, minlength=n).astype(np.float64)
    dangling = out_degree == 0
    np.maximum(out_degree, 1.0, out=out_degree)  # 避免除零

    inv_degree = 1.0 / out_degree[src]
    adj = csc_matrix((inv_degree, (dst, src)), shape=(n, n), dtype=np.float64)
    return nodes, adj, dangling


def load_pages(filename=DATA_FILE, fmt="pages"):
    """Read page records from a page-list (uri link...) or edge-list (src dst) file"""
    if fmt == "pages":
        return _load_page_list(filename)
    if fmt == "edges":
        return _load_edge_list(filename)
    raise ValueError(f"unknown input format: {fmt}")


def _load_page_list(filename):
    pages = []
    with open(filename, "r", encoding="utf-8") as f:
        for line in f:
            parts = line.split()
            if not parts or parts[0].startswith("#"):
                continue
            pages.append(Webpage(parts[0], tuple(parts[1:])))
    return pages


def _load_edge_list(filename):
    links = {}
    with open(filename, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, 1):
            parts = line.split()
            if not parts or parts[0].startswith("#"):
                continue
            if len(parts) != 2:
                raise ValueError(f"{filename}:{lineno}: expected 'src dst', got {line.strip()!r}")
            u, v = parts
            links.setdefault(u, []).append(v)
            links.setdefault(v, [])
    return [Webpage(uri, tuple(out)) for uri, out in links.items()]
