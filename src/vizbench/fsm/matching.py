"""Matching generated FSMs to reference (ideal) FSM files by concept name."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from ..errors import ConceptNotFoundError, IdealFsmNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES_PATH = Path(__file__).parent / "concept-categories.json"
DEFAULT_CATEGORY = "Other"

# Concept names whose reference file does not follow a mechanical naming rule
SPECIAL_MAPPINGS: dict[str, list[str]] = {
    "LinkedList": ["Linked_List.json"],
    "BinarySearchTree": ["Binary_Search_Tree__BST_.json"],
    "BinarySearch": ["Binary_Search.json"],
    "BinaryTree": ["Binary_Tree.json"],
    "BubbleSort": ["Bubble_Sort.json"],
    "InsertionSort": ["Insertion_Sort.json"],
    "SelectionSort": ["Selection_Sort.json"],
    "MergeSort": ["Merge_Sort.json"],
    "QuickSort": ["Quick_Sort.json"],
    "HeapSort": ["Heap_Sort.json"],
    "RadixSort": ["Radix_Sort.json"],
    "CountingSort": ["Counting_Sort.json"],
    "TopologicalSort": ["Topological_Sort.json"],
    "DepthFirstSearch": ["Depth_First_Search__DFS_.json"],
    "BreadthFirstSearch": ["Breadth_First_Search__BFS_.json"],
    "DijkstraAlgorithm": ["Dijkstra_s_Algorithm.json"],
    "BellmanFordAlgorithm": ["Bellman_Ford_Algorithm.json"],
    "FloydWarshallAlgorithm": ["Floyd_Warshall_Algorithm.json"],
    "KruskalAlgorithm": ["Kruskal_s_Algorithm.json"],
    "PrimAlgorithm": ["Prim_s_Algorithm.json"],
    "HashTable": ["Hash_Table.json"],
    "HashMap": ["Hash_Map.json"],
    "PriorityQueue": ["Priority_Queue.json"],
    "UnionFind": ["Union_Find__Disjoint_Set_.json"],
    "DisjointSet": ["Union_Find__Disjoint_Set_.json"],
    "RedBlackTree": ["Red_Black_Tree.json"],
    "AdjacencyList": ["Adjacency_List.json"],
    "AdjacencyMatrix": ["Adjacency_Matrix.json"],
    "WeightedGraph": ["Weighted_Graph.json"],
    "DirectedGraph": ["Graph__Directed_Undirected_.json"],
    "UndirectedGraph": ["Graph__Directed_Undirected_.json"],
    "Graph": ["Graph__Directed_Undirected_.json"],
    "MinHeap": ["Heap__Min_Max_.json"],
    "MaxHeap": ["Heap__Min_Max_.json"],
    "Heap": ["Heap__Min_Max_.json"],
    "KNearestNeighbors": ["K_Nearest_Neighbors__KNN_.json"],
    "KNN": ["K_Nearest_Neighbors__KNN_.json"],
    "KMeansClustering": ["K_Means_Clustering.json"],
    "LinearRegression": ["Linear_Regression.json"],
    "LinearSearch": ["Linear_Search.json"],
    "TwoPointers": ["Two_Pointers.json"],
    "SlidingWindow": ["Sliding_Window.json"],
    "DivideAndConquer": ["Divide_and_Conquer.json"],
    "FibonacciSequence": ["Fibonacci_Sequence.json"],
    "HuffmanCoding": ["Huffman_Coding.json"],
    "KnapsackProblem": ["Knapsack_Problem.json"],
    "LongestCommonSubsequence": ["Longest_Common_Subsequence.json"],
}

_CAMEL_BOUNDARY = re.compile(r"([a-z])([A-Z])")
_SNAKE_LETTER = re.compile(r"_([a-z])")
_WHITESPACE = re.compile(r"\s+")
_NON_ALNUM = re.compile(r"[^a-z0-9]")
_WORD_SPLIT = re.compile(r"[^a-z0-9]+")


def camel_to_snake(text: str) -> str:
    return _CAMEL_BOUNDARY.sub(r"\1_\2", text)


def snake_to_camel(text: str) -> str:
    return _SNAKE_LETTER.sub(lambda m: m.group(1).upper(), text)


def extract_concept(fsm: dict) -> str:
    """Return the concept an FSM was designed for.

    Raises:
        ConceptNotFoundError: If no concept, topic or goal field is present.
    """
    if not isinstance(fsm, dict):
        raise ConceptNotFoundError(f"FSM must be a JSON object, got {type(fsm).__name__}")
    meta = fsm.get("meta") if isinstance(fsm.get("meta"), dict) else {}
    concept = (
        meta.get("concept")
        or fsm.get("concept")
        or meta.get("topic")
        or fsm.get("topic")
        or meta.get("educational_goal")
    )
    if not concept:
        raise ConceptNotFoundError("FSM has no concept field")
    return str(concept)


def candidate_filenames(concept: str) -> list[str]:
    """Exact-match file names to try for a concept, most specific first."""
    c = concept.strip()
    lower = c.lower()
    names = [
        f"{c}.json",
        f"{camel_to_snake(c)}.json",
        f"{camel_to_snake(c).lower()}.json",
        f"{snake_to_camel(c)}.json",
        f"{snake_to_camel(lower)}.json",
        f"{_WHITESPACE.sub('_', c)}.json",
        f"{_WHITESPACE.sub('', c)}.json",
        f"{_WHITESPACE.sub('-', c)}.json",
        f"{lower}.json",
        f"{_WHITESPACE.sub('_', lower)}.json",
        f"{_WHITESPACE.sub('', lower)}.json",
        f"{_WHITESPACE.sub('-', lower)}.json",
        *SPECIAL_MAPPINGS.get(c, []),
    ]
    return list(dict.fromkeys(names))


def words_match(a: str, b: str) -> bool:
    """True if any word longer than two characters in one string overlaps the other."""
    words_a = [w for w in _WORD_SPLIT.split(a) if len(w) > 2]
    words_b = [w for w in _WORD_SPLIT.split(b) if len(w) > 2]
    return any(wa == wb or wa in wb or wb in wa for wa in words_a for wb in words_b)


def _fuzzy_match(base: str, concept_lower: str, concept_snake: str) -> bool:
    return (
        base == concept_lower
        or base == concept_snake
        or concept_lower in base
        or base in concept_lower
        or concept_snake in base
        or base in concept_snake
        or _NON_ALNUM.sub("", base) == _NON_ALNUM.sub("", concept_lower)
        or words_match(concept_lower, base)
    )


def find_ideal_fsm(ideal_dir: Path, concept: str) -> Path:
    """Locate the reference FSM file for a concept.

    Exact name variants are tried first, then fuzzy matching on lower-cased
    base names.

    Raises:
        IdealFsmNotFoundError: If no file matches.
    """
    ideal_dir = Path(ideal_dir)
    files = sorted(f.name for f in ideal_dir.iterdir() if f.is_file())
    available = set(files)

    for name in candidate_filenames(concept):
        if name in available:
            logger.debug("Exact ideal FSM match: %s -> %s", concept, name)
            return ideal_dir / name

    stripped = concept.strip()
    concept_lower = stripped.lower()
    concept_snake = camel_to_snake(stripped).lower()
    for name in files:
        base = name[:-5].lower() if name.endswith(".json") else name.lower()
        if _fuzzy_match(base, concept_lower, concept_snake):
            logger.debug("Fuzzy ideal FSM match: %s -> %s", concept, name)
            return ideal_dir / name

    raise IdealFsmNotFoundError(f"No matching ideal FSM file for concept '{concept}'")


@dataclass
class ConceptCategories:
    """Reverse lookup from concept name to its category."""

    mapping: dict[str, str] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path | None = None) -> "ConceptCategories":
        """Load a category -> [concepts] JSON file.

        A missing or unreadable file yields an empty mapping, so every concept
        falls back to the default category.
        """
        path = Path(path) if path else DEFAULT_CATEGORIES_PATH
        try:
            categories = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not load concept categories from %s: %s", path, e)
            return cls()

        mapping = {}
        for category, concepts in categories.items():
            for concept in concepts:
                mapping[str(concept).lower()] = category
        return cls(mapping=mapping)

    def category_for(self, concept: str, partial: bool = False) -> str:
        """Look up a concept's category.

        With ``partial``, a concept containing (or contained in) a known concept
        also matches, so "Array Example" resolves like "Array".
        """
        normalized = concept.lower().strip()
        if normalized in self.mapping:
            return self.mapping[normalized]
        if partial and normalized:
            for known, category in self.mapping.items():
                if known in normalized or normalized in known:
                    return category
        return DEFAULT_CATEGORY
