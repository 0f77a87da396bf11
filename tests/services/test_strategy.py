from navigator.services.strategy import MOCK_POOL, recommend


class TestRecommend:
    def test_three_tiers(self):
        rec = recommend("0x" + "5" * 40)

        assert rec.conservative.allocation.pt == 100
        assert rec.conservative.allocation.yt == 0
        assert rec.neutral.allocation.pt == 70
        assert rec.neutral.allocation.yt == 30
        assert rec.aggressive.allocation.pt == 0
        assert rec.aggressive.allocation.yt == 100

    def test_expected_yields_increase_with_risk(self):
        rec = recommend("0x" + "5" * 40, "aggressive")
        tiers = [rec.conservative, rec.neutral, rec.aggressive]
        assert [t.expected_apy for t in tiers] == [12.5, 14.8, 18.5]
        assert [t.maturity_yield for t in tiers] == [13.2, 15.5, 20.2]

    def test_allocations_sum_to_100(self):
        rec = recommend("0x" + "5" * 40)
        for tier in (rec.conservative, rec.neutral, rec.aggressive):
            assert tier.allocation.pt + tier.allocation.yt == 100
            assert tier.pool == MOCK_POOL

    def test_pool_maturity(self):
        assert MOCK_POOL.maturity == 1735171200
        body = recommend("0x" + "5" * 40).model_dump(by_alias=True)
        assert body["neutral"]["expectedAPY"] == 14.8
        assert body["neutral"]["riskLevel"] == "neutral"
        assert body["neutral"]["pool"]["ptPrice"] == 0.97
