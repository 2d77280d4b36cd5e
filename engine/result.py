"""Match result from two completed innings."""

from engine.models import Result

TIE = "tie"
NO_RESULT = "no result"


def calculate_result(first_team, first_total, second_team, second_total) -> Result:
    """
    Compare the two innings totals.

    Pure function of its inputs, so re-running it over the same final state
    yields the same Result.
    """
    if second_total > first_total:
        margin = second_total - first_total
        return Result(
            winner=second_team,
            summary=f"{second_team} won by {margin} runs",
            margin_type="runs",
            margin_value=margin,
        )
    if second_total < first_total:
        margin = first_total - second_total
        return Result(
            winner=first_team,
            summary=f"{first_team} won by {margin} runs",
            margin_type="runs",
            margin_value=margin,
        )
    return Result(winner=TIE, summary="Match tied", margin_type="tie")


def no_result(reason=None) -> Result:
    summary = "No result"
    if reason:
        summary = f"No result ({reason})"
    return Result(winner=NO_RESULT, summary=summary)
