from pytest import fixture

from exp.solver_exp import random_pages
from webgraph import Webpage


@fixture
def pages():
    """Small collection with a self-link, a repeated link, an external link and a dangling page"""
    return [
        Webpage("A", ("B", "C", "A", "B", "X")),
        Webpage("B", ("C",)),
        Webpage("C", ("A",)),
        Webpage("D", ("C",)),
        Webpage("E", ()),
    ]


@fixture(scope="package")
def web():
    """A random page collection"""
    return random_pages(n=300, avg_links=4, seed=7)
