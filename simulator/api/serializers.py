from rest_framework import serializers

from simulator.lifecycle import SCENARIO_KINDS


class SimulationStatusSerializer(serializers.Serializer):
    is_simulating = serializers.BooleanField()
    effective_date = serializers.CharField()


class SimulationDateSerializer(serializers.Serializer):
    # Stored as given; an invalid value leaves the effective date on real time
    date = serializers.CharField(max_length=32, help_text='Date to simulate, YYYY-MM-DD')


class ScenarioRequestSerializer(serializers.Serializer):
    kind = serializers.CharField(
        max_length=64,
        help_text=f"One of: {', '.join(SCENARIO_KINDS)}, or 'all'"
    )
