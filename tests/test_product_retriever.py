import pytest

from models.product_record import ProductRecord
from services.retrieval.product_retriever import ProductRetriever, product_id_for
from services.retrieval.vector_index import VectorMatch


class FixedScoreIndex:
    def __init__(self, score):
        self.score = score

    async def query(self, vector, top_k):
        return [VectorMatch(id="x", score=self.score, metadata={"name": "X", "description": "d", "price": 10})]


class FailingIndex:
    async def query(self, vector, top_k):
        raise TimeoutError("vector service timed out")


def test_product_id_is_a_slug():
    assert product_id_for("Café  Deluxe 500g!") == "cafe-deluxe-500g"
    with pytest.raises(ValueError):
        product_id_for("!!!")


@pytest.mark.asyncio
async def test_ingest_then_match(retriever, fake_openai):
    stored = await retriever.ingest(ProductRecord(name="Widget X", description="A sturdy widget", price=10))
    assert stored.id == "widget-x"
    assert fake_openai.embeddings.calls == ["Widget X: A sturdy widget"]

    match = await retriever.best_match("do you have product X?")
    assert match is not None
    assert match.record.name == "Widget X"
    assert match.record.price == 10
    assert match.relevance_score == pytest.approx(1.0)


@pytest.mark.asyncio
async def test_low_score_is_no_match(retriever):
    await retriever.ingest(ProductRecord(name="Widget X", description="A sturdy widget", price=10))
    assert await retriever.best_match("hello") is None


@pytest.mark.asyncio
async def test_empty_index_is_no_match(retriever):
    assert await retriever.best_match("hello") is None


@pytest.mark.asyncio
@pytest.mark.parametrize("score,accepted", [(0.5, True), (0.4999, False), (0.8, True)])
async def test_threshold_is_inclusive(retriever, score, accepted):
    scored = ProductRetriever(FixedScoreIndex(score), retriever.embeddings, threshold=0.5)
    match = await scored.best_match("anything")
    assert (match is not None) is accepted


@pytest.mark.asyncio
async def test_remote_failures_become_no_match(retriever, fake_openai):
    failing = ProductRetriever(FailingIndex(), retriever.embeddings, threshold=0.5)
    assert await failing.best_match("anything") is None
    with pytest.raises(TimeoutError):
        await failing.lookup("anything")

    fake_openai.embeddings.error = RuntimeError("embedding service down")
    assert await retriever.best_match("anything") is None


@pytest.mark.asyncio
async def test_ingest_requires_name(retriever):
    with pytest.raises(ValueError):
        await retriever.ingest(ProductRecord(name=" ", description="x", price=1))
