"""Tests for retrieval, ranking and the search-and-answer pipeline."""

from types import SimpleNamespace

import pytest

from conftest import (
    SAMPLE_ANALYSIS,
    USER_ID,
    FakeAnswerGenerator,
    FakeStore,
    make_note,
    make_question,
    make_repo,
)
from studyforge.schemas.search import Source
from studyforge.services.embedding import create_embedding
from studyforge.services.llm_service import FALLBACK_ANSWER, AnswerService
from studyforge.services.rag_service import (
    RagService,
    RetrievalConfig,
    RetrievalError,
    build_context,
    analysis_text,
    calculate_relevance,
    find_relevant_notes,
    find_relevant_questions,
    find_relevant_repos,
    format_repo_content,
    is_project_query,
    rank_sources,
)


@pytest.fixture
def binary_search_note():
    return make_note("Binary Search", "Binary search halves a sorted interval on each step.")


@pytest.fixture
def cooking_note():
    return make_note("Cooking", "Pasta recipe with tomato and basil.")


@pytest.fixture
def binary_search_question():
    return make_question("Google", "Arrays", "Implement binary search on a rotated sorted array.")


def make_service(store, generator=None) -> RagService:
    return RagService(store=store, answer_generator=generator or FakeAnswerGenerator(), config=RetrievalConfig())


# =============================================================================
# FILTERS
# =============================================================================


class TestFindRelevantNotes:
    def test_substring_match_in_content_or_title(self, binary_search_note, cooking_note):
        query = "binary search"
        relevant = find_relevant_notes([cooking_note, binary_search_note], create_embedding(query), query)

        assert relevant == [binary_search_note]

    def test_substring_wins_regardless_of_similarity(self):
        note = make_note("Trees", "Binary Search Tree traversal", embed=False)
        query = "binary search"

        assert find_relevant_notes([note], create_embedding(query), query) == [note]

    def test_title_match_without_embedding(self):
        note = make_note("Heaps", "Priority queues in arrays.", embed=False)

        assert find_relevant_notes([note], create_embedding("heaps"), "heaps") == [note]

    def test_similarity_above_threshold_matches(self):
        note = make_note("Sorting", "merge sort quick sort heap sort")
        query = "quick sort versus merge sort"

        assert query not in note.content
        assert find_relevant_notes([note], create_embedding(query), query) == [note]

    def test_capped_in_input_order(self):
        notes = [make_note(f"Graphs {i}", "graph traversal") for i in range(5)]
        query = "graph"

        assert find_relevant_notes(notes, create_embedding(query), query) == notes[:3]


class TestFindRelevantQuestions:
    def test_topic_match(self):
        question = make_question("Amazon", "Dynamic Programming", "Count ways to climb stairs.")
        query = "dynamic programming"

        assert find_relevant_questions([question], create_embedding(query), query) == [question]

    def test_capped_at_two(self):
        questions = [make_question("Meta", "Graphs", f"Graph question {i}") for i in range(4)]
        query = "graph"

        assert find_relevant_questions(questions, create_embedding(query), query) == questions[:2]


class TestFindRelevantRepos:
    def test_project_query_detection(self):
        assert is_project_query("Explain my project structure", ["structure"])
        assert not is_project_query("What is a heap?", ["structure"])

    def test_project_query_without_overlap(self):
        repo = make_repo("alice/planner", analysis={"summary": "Weekly planner"})

        assert find_relevant_repos([repo], "show me the project structure") == [repo]

    def test_name_match_without_analysis(self):
        repo = make_repo("alice/heap-visualizer")

        assert find_relevant_repos([repo], "heap") == [repo]

    def test_project_query_pulls_in_analyzed_repos_only(self):
        analyzed = make_repo("alice/study-tracker", analysis=SAMPLE_ANALYSIS)
        bare = make_repo("alice/dotfiles")

        assert find_relevant_repos([bare, analyzed], "What is the structure of my project?") == [analyzed]

    def test_analysis_text_is_searched(self):
        repo = make_repo("alice/study-tracker", analysis=SAMPLE_ANALYSIS)

        assert find_relevant_repos([repo], "flask") == [repo]

    def test_capped_at_three_in_input_order(self):
        repos = [make_repo(f"alice/app-{i}", analysis=SAMPLE_ANALYSIS) for i in range(5)]

        assert find_relevant_repos(repos, "show me the project structure") == repos[:3]

    def test_project_query_without_analyzed_repos_falls_back_to_nothing(self):
        repos = [make_repo("alice/dotfiles"), make_repo("alice/scratch")]

        assert find_relevant_repos(repos, "show me the project structure") == []

    def test_analysis_is_serialized_compactly(self):
        repo = make_repo("alice/app", analysis={"summary": "Flask API", "technologies": ["python", "flask"]})

        assert analysis_text(repo) == '{"summary":"Flask API","technologies":["python","flask"]}'

    def test_unrelated_query_matches_nothing(self):
        repo = make_repo("alice/study-tracker", analysis=SAMPLE_ANALYSIS)

        assert find_relevant_repos([repo], "binary search") == []


# =============================================================================
# RANKING
# =============================================================================


class TestCalculateRelevance:
    @pytest.mark.parametrize(
        "content,query,expected",
        [
            ("Binary search trees", "binary search", 1.0),
            ("A binary heap", "binary search", 0.5),
            ("Pasta recipe", "binary search", 0.0),
            ("anything", "   ", 0.0),
        ],
    )
    def test_fraction_of_query_words(self, content, query, expected):
        assert calculate_relevance(content, query) == expected


class TestRankSources:
    def test_sorted_descending_and_capped(self):
        notes = [make_note(f"N{i}", "graph" if i % 2 else "graph traversal") for i in range(3)]
        questions = [make_question("Meta", "Graphs", "graph traversal order") for _ in range(2)]
        repos = [make_repo(f"alice/graph-{i}") for i in range(3)]

        sources = rank_sources(notes, questions, repos, "graph traversal")

        assert len(sources) == 5
        relevances = [s.relevance for s in sources]
        assert relevances == sorted(relevances, reverse=True)

    def test_ties_keep_notes_before_questions_before_repos(self):
        note = make_note("Heaps", "heap")
        question = make_question("Meta", "Heaps", "heap")
        repo = make_repo("alice/heap")

        sources = rank_sources([note], [question], [repo], "heap")

        assert [s.type for s in sources] == ["note", "question", "github"]

    def test_long_note_content_is_truncated(self):
        note = make_note("Long", "x" * 600)

        [source] = rank_sources([note], [], [], "x")

        assert source.content == "x" * 500 + "..."

    def test_question_title_combines_company_and_topic(self):
        question = make_question("Google", "Arrays", "Two sum")

        [source] = rank_sources([], [question], [], "two sum")

        assert source.title == "Google - Arrays"
        assert source.content == "Two sum"
        assert source.relevance == 1.0


class TestFormatRepoContent:
    def test_includes_metadata_and_analysis(self):
        repo = make_repo(
            "alice/study-tracker",
            description="Tracks study sessions",
            stars=4,
            analysis=SAMPLE_ANALYSIS,
        )

        content = format_repo_content(repo)

        assert content.startswith("Repository: alice/study-tracker\n")
        assert "Description: Tracks study sessions" in content
        assert "Primary Language: Python" in content
        assert "Stars: 4" in content
        assert "Summary: Flask API that tracks study sessions." in content
        assert "Technologies: python, postgresql" in content
        assert "- main.py: Main application entry point" in content

    def test_zero_stars_and_missing_analysis_omitted(self):
        content = format_repo_content(make_repo("alice/dotfiles"))

        assert "Stars" not in content
        assert "Summary" not in content

    def test_malformed_analysis_is_ignored(self):
        repo = make_repo("alice/broken", analysis={"key_files": "not-a-list"})

        assert "Key Files" not in format_repo_content(repo)


def test_build_context_format():
    sources = [
        Source(type="note", title="Binary Search", content="halves the interval", relevance=1.0),
        Source(type="github", title="alice/app", content="Repository: alice/app", relevance=0.5),
    ]

    assert build_context(sources) == (
        "[NOTE] Binary Search:\nhalves the interval\n\n[GITHUB] alice/app:\nRepository: alice/app"
    )


# =============================================================================
# PIPELINE
# =============================================================================


class TestSearchAndAnswer:
    async def test_binary_search_question(self, binary_search_note, cooking_note, binary_search_question):
        store = FakeStore(notes=[cooking_note, binary_search_note], questions=[binary_search_question])
        generator = FakeAnswerGenerator()

        response = await make_service(store, generator).search_and_answer(USER_ID, "binary search")

        assert response.answer == generator.answer
        assert [(s.type, s.title) for s in response.sources] == [
            ("note", "Binary Search"),
            ("question", "Google - Arrays"),
        ]
        [(query, context)] = generator.calls
        assert query == "binary search"
        assert context.startswith("[NOTE] Binary Search:\n")
        assert "Pasta" not in context

    async def test_project_structure_question_uses_analyzed_repo(self, binary_search_note):
        repo = make_repo("alice/study-tracker", analysis=SAMPLE_ANALYSIS)
        store = FakeStore(notes=[binary_search_note], repos=[repo, make_repo("alice/dotfiles")])

        response = await make_service(store).search_and_answer(
            USER_ID, "What is the structure of my project?"
        )

        assert [s.title for s in response.sources] == ["alice/study-tracker"]
        assert response.sources[0].content.startswith("Repository: alice/study-tracker")

    async def test_only_repositories_connected(self):
        repo = make_repo("alice/study-tracker", analysis=SAMPLE_ANALYSIS)

        response = await make_service(FakeStore(repos=[repo])).search_and_answer(
            USER_ID, "Which technology stack did I use?"
        )

        assert len(response.sources) == 1
        assert response.sources[0].type == "github"

    async def test_no_content_still_answers(self):
        generator = FakeAnswerGenerator("I don't have material on that yet.")

        response = await make_service(FakeStore(), generator).search_and_answer(USER_ID, "what is a trie")

        assert response.sources == []
        assert generator.calls == [("what is a trie", "")]

    async def test_reads_are_scoped_to_user(self):
        store = FakeStore()

        await make_service(store).search_and_answer(USER_ID, "anything")

        assert store.queried_users == [USER_ID, USER_ID, USER_ID]

    async def test_store_failure_raises_retrieval_error(self):
        with pytest.raises(RetrievalError) as exc_info:
            await make_service(FakeStore(fail=True)).search_and_answer(USER_ID, "binary search")

        assert isinstance(exc_info.value.__cause__, RuntimeError)

    async def test_llm_failure_returns_fallback_answer_with_sources(self, binary_search_note):
        async def create(**kwargs):
            raise RuntimeError("provider down")

        client = SimpleNamespace(messages=SimpleNamespace(create=create))
        service = make_service(FakeStore(notes=[binary_search_note]), AnswerService(client=client))

        response = await service.search_and_answer(USER_ID, "binary search")

        assert response.answer == FALLBACK_ANSWER
        assert [s.title for s in response.sources] == ["Binary Search"]

    async def test_repo_cap_comes_from_config(self):
        repos = [make_repo(f"alice/app-{i}", analysis=SAMPLE_ANALYSIS) for i in range(3)]
        service = RagService(
            store=FakeStore(repos=repos),
            answer_generator=FakeAnswerGenerator(),
            config=RetrievalConfig(max_repos=1),
        )

        response = await service.search_and_answer(USER_ID, "show me the project structure")

        assert [s.title for s in response.sources] == ["alice/app-0"]

