from typing import Iterable, List, Sequence

from hopchain.models import Hop


def compute_open_edges(starting_words: Sequence[str], hops: Iterable[Hop]) -> List[str]:
    """
    Fold the accepted hops, in the order given, over the puzzle's starting words and return the
    words that are still open endpoints. An empty result means the puzzle is solved.

    For each hop, the canonical (from, to) pair from its link key is checked against the working
    sequence as left by the previous hops:
      - from missing: the hop is stale or malformed and is skipped
      - from and to both open: the hop closes a loop, every occurrence of both is removed
      - only from open: the first occurrence of from moves to to
    """
    edges = list(starting_words)

    for hop in hops:
        pair = hop.pair()
        if pair is None:
            continue
        from_word, to_word = pair

        if from_word not in edges:
            continue

        if to_word in edges:
            edges = [word for word in edges if word != from_word and word != to_word]
        else:
            edges[edges.index(from_word)] = to_word

    return edges


def is_complete(starting_words: Sequence[str], hops: Iterable[Hop]) -> bool:
    return not compute_open_edges(starting_words, hops)
