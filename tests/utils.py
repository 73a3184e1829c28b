from decimal import Decimal, localcontext

from stellarstream.progress import calculate_progress


def sample_instants(stream, extra=()):
    """Instants around and inside a stream's window worth checking invariants at."""
    start, end = stream.start_at, stream.end_at
    instants = {start - 1, start, start + 1, (start + end) // 2, end - 1, end, end + 1000}
    instants.update(extra)
    if stream.canceled_at is not None:
        instants.update({stream.canceled_at - 1, stream.canceled_at, stream.canceled_at + 1})
    return sorted(instants)


def assert_amounts_conserved(testcase, stream, instants=None):
    instants = sample_instants(stream) if instants is None else instants
    for at in instants:
        progress = calculate_progress(stream, at)
        testcase.assertGreaterEqual(progress.released_amount, Decimal(0))
        testcase.assertLessEqual(progress.released_amount, stream.total_amount)
        with localcontext() as ctx:
            ctx.prec = 100
            total = progress.released_amount + progress.remaining_amount
        testcase.assertEqual(
            total,
            stream.total_amount,
            f"Released and remaining amounts do not add up at {at}.",
        )
