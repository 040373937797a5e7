from salespipe.schemas.common import CamelModel, Money, Rate


class CurrentMonthOut(CamelModel):
    projected: Money
    actual: Money
    target: Money | None = None


class NextMonthOut(CamelModel):
    projected: Money
    target: Money | None = None


class QuarterOut(CamelModel):
    quarter: str
    projected: Money
    actual: Money


class TrendOut(CamelModel):
    period: str
    revenue: Money
    deals: int
    avg_deal_size: Money


class ForecastResponse(CamelModel):
    current_month: CurrentMonthOut
    next_month: NextMonthOut
    quarterly: list[QuarterOut]
    trends: list[TrendOut]


class MonthRateOut(CamelModel):
    month: str
    rate: Rate
    deals: int


class ValueRangeRateOut(CamelModel):
    range: str
    rate: Rate
    deals: int


class IndustryRateOut(CamelModel):
    industry: str
    rate: Rate
    deals: int


class WinRateResponse(CamelModel):
    overall: Rate
    by_month: list[MonthRateOut]
    by_value: list[ValueRangeRateOut]
    by_industry: list[IndustryRateOut]
    avg_time_to_close: int


class TeamMemberOut(CamelModel):
    user_id: int
    name: str
    proposals_sent: int
    proposals_won: int
    total_revenue: Money
    win_rate: Rate
    avg_deal_size: Money
    avg_response_time: int


class TeamTotalsOut(CamelModel):
    proposals_sent: int
    proposals_won: int
    total_revenue: Money
    avg_win_rate: Rate


class TeamPerformanceResponse(CamelModel):
    members: list[TeamMemberOut]
    totals: TeamTotalsOut
