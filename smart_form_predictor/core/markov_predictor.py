# markov_predictor.py
# first-order Markov chain over the words of previously submitted field values.

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Iterable, Tuple, Optional
from collections import Counter
import random

Word = str
Score = float
NextList = List[Tuple[Word, Score]]


@dataclass(frozen=True)
class MarkovConfig:
    """
    Knobs for tokenisation and top-k behaviour.
    """
    topn: int = 5
    lowercase: bool = False


class MarkovPredictor:
    """
    First-order Markov chain predictor with:
      - whitespace tokenisation (field values are short, keep punctuation)
      - transition counts and starter-word counts
      - count-normalized scoring for the top-k view
      - serialization helpers

    Starter selection is uniform over the distinct starters while successor
    selection follows counts; the two are intentionally not the same.
    """

    def __init__(self, config: Optional[MarkovConfig] = None, rng: Optional[random.Random] = None) -> None:
        self.cfg = config or MarkovConfig()
        self.rng = rng or random.Random()
        # prev -> Counter(next)
        self._chain: Dict[Word, Counter] = {}
        # first word of each value
        self._starters: Counter = Counter()

    # ------------------------------------------------------------------
    # Tokenization
    # ------------------------------------------------------------------
    def _tokenize(self, text: str) -> List[Word]:
        if not text:
            return []
        tokens = text.split()
        if self.cfg.lowercase:
            tokens = [t.lower() for t in tokens]
        return tokens

    def _key(self, word: Word) -> Word:
        return word.lower() if self.cfg.lowercase else word

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------
    def train_sentence(self, text: str) -> None:
        toks = self._tokenize(str(text))
        if not toks:
            return

        self._starters[toks[0]] += 1
        for a, b in zip(toks, toks[1:]):
            self._chain.setdefault(a, Counter())[b] += 1

    def train_many(self, sentences: Iterable[str]) -> None:
        for s in sentences:
            self.train_sentence(s)

    # ------------------------------------------------------------------
    # Prediction (public API)
    # ------------------------------------------------------------------
    def predict(self, partial: Optional[str]) -> Word:
        """
        No partial input: a random starter word.
        Otherwise: the most frequent successor of the last word, or "" when
        that word never started a transition.
        """
        if not partial:
            return self.random_starter()

        toks = self._tokenize(partial)
        if not toks:
            return self.random_starter()

        ranked = self.top_next(toks[-1], topn=1)
        return ranked[0][0] if ranked else ""

    def random_starter(self) -> Word:
        starters = list(self._starters)
        if not starters:
            return ""
        return starters[self.rng.randrange(len(starters))]

    def top_next(self, prev: Word, topn: Optional[int] = None) -> NextList:
        """
        Returns a list of tuples (word, share) for the most likely words after
        'prev', share being count / total successors. Ties keep first-seen order.
        """
        n = topn or self.cfg.topn
        counter = self._chain.get(self._key(prev))
        if not counter:
            return []

        total = sum(counter.values())
        ranked = sorted(counter.items(), key=lambda x: x[1], reverse=True)
        return [(w, c / total) for w, c in ranked[:n]]

    # ------------------------------------------------------------------
    # Introspection helpers
    # ------------------------------------------------------------------
    @property
    def transitions(self) -> Dict[Word, Dict[Word, int]]:
        return {k: dict(v) for k, v in self._chain.items()}

    @property
    def starters(self) -> Dict[Word, int]:
        return dict(self._starters)

    def vocabulary_size(self) -> int:
        vocab = set(self._starters)
        for prev, nxt in self._chain.items():
            vocab.add(prev)
            vocab.update(nxt)
        return len(vocab)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def save_state(self) -> dict:
        return {
            "chain": self.transitions,
            "starters": self.starters,
            "config": {"topn": self.cfg.topn, "lowercase": self.cfg.lowercase},
        }

    def load_state(self, data: dict) -> None:
        chain = data.get("chain", {})
        self._chain = {k: Counter(v) for k, v in chain.items()}
        self._starters = Counter(data.get("starters", {}))
