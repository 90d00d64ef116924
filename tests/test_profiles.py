"""Tests for role, workflow, tool and training-gap profiles."""
import pytest

from interview_insights.dashboard import calculate_dashboard_metrics
from interview_insights.models import AffectedRole, DataFlow, ToolUser, ToolWorkflow, TrainingRisk
from interview_insights.profiles import (
    MAX_FAILURE_POINTS,
    MAX_TOOL_GAPS,
    build_role_profiles,
    build_tool_profiles,
    build_training_gap_profiles,
    build_workflow_profiles,
)


def by_name(profiles, attr="name"):
    return {getattr(p, attr): p for p in profiles}


def handoff(from_role, to_role, process, risk="medium"):
    return {"fromRole": from_role, "toRole": to_role, "process": process, "riskLevel": risk}


class TestRoleProfiles:

    @pytest.fixture
    def profiles(self, make_interview):
        return build_role_profiles([
            make_interview(
                "i1",
                roles=[
                    {"title": "Sales Rep", "tools": ["Salesforce"], "teamSize": 5},
                    {"title": "Ops"},
                ],
                handoff_risks=[
                    handoff("Sales Rep", "Ops", "Order Handoff", "high"),
                    handoff("Finance", "Sales Rep", "Credit approval"),
                    handoff("Ghost", "Nobody", "Unrelated"),
                ],
                pain_points=[
                    {"description": "Quotes take too long", "severity": "medium", "affectedRoles": ["sales rep"]},
                    {"description": "Orders entered twice", "severity": "critical", "affectedRoles": ["Sales Rep", "Ops"]},
                ],
                training_gaps=[
                    {"area": "CRM basics", "priority": "low", "affectedRoles": ["Sales Rep"]},
                    {"area": "Negotiation", "priority": "high", "affectedRoles": ["SALES REP"]},
                ],
            ),
            make_interview(
                "i2",
                roles=[{"title": "sales rep", "responsibilities": ["Prospecting"], "teamSize": 9}],
                handoff_risks=[handoff("Sales Rep", "ops", "order handoff", "medium")],
            ),
            make_interview("i3", status="pending", roles=[{"title": "Ops"}]),
        ])

    def test_roles_merge_case_insensitively_and_sort_by_count(self, profiles):
        assert [(p.title, p.count) for p in profiles] == [("Sales Rep", 2), ("Ops", 1)]
        sales = profiles[0]
        assert sales.interview_ids == ["i1", "i2"]
        assert sales.responsibilities == ["Prospecting"]
        assert sales.team_size == 9

    def test_dependencies_follow_handoff_direction(self, profiles):
        sales, ops = profiles
        [output] = sales.outputs_to
        assert (output.role, output.process, output.count, output.risk_level) == ("Ops", "Order Handoff", 2, "high")
        [source] = sales.inputs_from
        assert (source.role, source.process, source.count) == ("Finance", "Credit approval", 1)

        [incoming] = ops.inputs_from
        assert (incoming.role, incoming.count) == ("Sales Rep", 2)
        assert ops.outputs_to == []

    def test_issues_ranked_by_severity(self, profiles):
        sales, ops = profiles
        assert [i.description for i in sales.issues_detected] == ["Orders entered twice", "Quotes take too long"]
        assert [i.description for i in ops.issues_detected] == ["Orders entered twice"]

    def test_training_needs_ranked_by_priority(self, profiles):
        sales, ops = profiles
        assert [n.area for n in sales.training_needs] == ["Negotiation", "CRM basics"]
        assert ops.training_needs == []

    def test_profiles_have_ids(self, profiles):
        assert all(p.id for p in profiles)
        assert len({p.id for p in profiles}) == len(profiles)


class TestWorkflowProfiles:

    @pytest.fixture
    def profile(self, make_interview):
        [profile] = build_workflow_profiles([
            make_interview(
                "i1",
                workflows=[{
                    "name": "Order Fulfillment", "frequency": "weekly",
                    "steps": ["Receive order", "Check inventory levels in ERP", "Ship"],
                    "participants": ["Warehouse Clerk"],
                }],
                tools=[{"name": "NetSuite", "usedBy": ["Warehouse Clerk"]}],
            ),
            make_interview(
                "i2",
                workflows=[{
                    "name": "order fulfillment", "frequency": "daily",
                    "steps": ["check inventory levels in ERP", "Receive order", "Pack and label boxes"],
                    "participants": ["Warehouse Clerk", "Ops Manager"],
                    "duration": "2 hours",
                }],
                roles=[{"title": "Ops Manager", "tools": ["Slack"]}],
                pain_points=[{"description": "Inventory counts are often wrong", "severity": "high"}],
            ),
        ])
        return profile

    def test_aggregate(self, profile):
        assert profile.name == "Order Fulfillment"
        assert profile.count == 2
        assert profile.frequency == "daily"
        assert profile.participants == ["Warehouse Clerk", "Ops Manager"]
        assert profile.duration == "2 hours"

    def test_steps_keep_first_sighting_order(self, profile):
        assert [(s.name, s.order, s.count) for s in profile.steps] == [
            ("Receive order", 0, 2),
            ("Check inventory levels in ERP", 1, 2),
            ("Ship", 2, 1),
            ("Pack and label boxes", 2, 1),
        ]
        assert profile.steps[0].interview_ids == ["i1", "i2"]

    def test_systems_come_from_participants_tools(self, profile):
        assert profile.systems == ["NetSuite", "Slack"]

    def test_failure_points_link_to_matching_step(self, profile):
        [failure] = profile.failure_points
        check_step = profile.steps[1]
        assert failure.description == "Inventory counts are often wrong"
        assert failure.severity == "high"
        assert failure.step_id == check_step.id

    def test_unclear_steps(self, profile):
        assert profile.unclear_steps == ["Ship"]

    def test_failure_point_matching_only_the_workflow_name(self, make_interview):
        [profile] = build_workflow_profiles([make_interview(
            "i1",
            workflows=[{"name": "Payroll Run", "steps": ["Collect timesheets"]}],
            pain_points=[
                {"description": "Payroll errors every month", "severity": "critical"},
                {"description": "Slow laptops", "severity": "low"},
            ],
        )])
        [failure] = profile.failure_points
        assert failure.step_id is None
        assert failure.severity == "critical"

    def test_failure_points_are_capped(self, make_interview):
        descriptions = [f"Payroll mistake number {n}" for n in range(MAX_FAILURE_POINTS + 2)]
        [profile] = build_workflow_profiles([make_interview(
            "i1",
            workflows=[{"name": "Payroll Run", "steps": ["Collect timesheets"]}],
            pain_points=[{"description": d, "severity": "medium"} for d in descriptions],
        )])
        assert [f.description for f in profile.failure_points] == descriptions[:MAX_FAILURE_POINTS]

    def test_non_completed_interviews_are_ignored(self, make_interview):
        assert build_workflow_profiles([
            make_interview("i1", status="failed", workflows=[{"name": "Payroll"}]),
        ]) == []


class TestToolProfiles:

    @pytest.fixture
    def profiles(self, make_interview):
        return by_name(build_tool_profiles([
            make_interview(
                "i1",
                tools=[
                    {"name": "Excel", "usedBy": ["Sales Rep"], "purpose": "Tracking deals", "frequency": "daily"},
                    {"name": "Salesforce", "usedBy": ["Sales Rep", "Account Manager"], "frequency": "weekly"},
                ],
            ),
            make_interview(
                "i2",
                tools=[
                    {"name": "Salesforce", "usedBy": ["Account Manager"], "frequency": "weekly"},
                    {
                        "name": "HubSpot", "usedBy": ["Marketing"],
                        "limitations": "Requires manual export of leads every week",
                    },
                ],
                workflows=[{"name": "Lead Handoff", "participants": ["Marketing", "Account Manager"]}],
            ),
        ]))

    def test_categories(self, profiles):
        assert profiles["Excel"].category == "spreadsheet"
        assert profiles["Salesforce"].category == "crm"
        assert profiles["HubSpot"].category == "crm"

    def test_lone_spreadsheet_is_underutilized_and_a_data_handoff(self, profiles):
        excel = profiles["Excel"]
        assert [g.type for g in excel.gaps] == ["underutilized", "data-handoff"]
        assert excel.gaps[1].severity == "low"
        assert excel.intended_purpose == "Tracking deals"
        assert excel.workflows == []

    def test_users_carry_purpose_and_count(self, profiles):
        assert profiles["Excel"].used_by == [ToolUser(role="Sales Rep", purpose="Tracking deals", count=1)]
        assert [(u.role, u.count) for u in profiles["Salesforce"].used_by] == [
            ("Account Manager", 2), ("Sales Rep", 1),
        ]

    def test_overlapping_crms_without_integration(self, profiles):
        salesforce = profiles["Salesforce"]
        assert salesforce.workflows == [ToolWorkflow(name="Lead Handoff", count=1)]
        assert [g.type for g in salesforce.gaps] == ["overlap", "missing-integration"]
        assert salesforce.gaps[0].related_tools == ["HubSpot"]
        assert salesforce.gaps[1].related_tools == ["HubSpot"]

    def test_manual_limitation_is_a_data_handoff(self, profiles):
        hubspot = profiles["HubSpot"]
        assert [g.type for g in hubspot.gaps] == [
            "underutilized", "overlap", "missing-integration", "data-handoff",
        ]
        assert hubspot.gaps[-1].severity == "medium"
        assert hubspot.gaps[-1].description == "Requires manual export of leads every week"

    def test_frequency_is_the_most_common_known_value(self, profiles):
        assert profiles["Salesforce"].frequency == "weekly"
        assert profiles["Excel"].frequency == "daily"
        assert profiles["HubSpot"].frequency == "unknown"

    def test_declared_integration_suppresses_missing_integration(self, make_interview):
        profiles = by_name(build_tool_profiles([make_interview(
            "i1",
            tools=[
                {"name": "Salesforce", "usedBy": ["Ops"], "integrations": ["HubSpot Marketing Hub"]},
                {"name": "HubSpot", "usedBy": ["Ops"]},
            ],
            workflows=[{"name": "Lead routing", "participants": ["Ops"]}],
        )]))
        for profile in profiles.values():
            assert "missing-integration" not in [g.type for g in profile.gaps]

    def test_commonly_integrated_tools_never_need_an_integration(self, make_interview):
        profiles = by_name(build_tool_profiles([make_interview(
            "i1",
            tools=[
                {"name": "Excel", "usedBy": ["Ops"]},
                {"name": "Salesforce", "usedBy": ["Ops"]},
            ],
            workflows=[{"name": "Pipeline review", "participants": ["Ops"]}],
        )]))
        assert [w.name for w in profiles["Salesforce"].workflows] == ["Pipeline review"]
        assert [g.type for g in profiles["Salesforce"].gaps] == ["underutilized"]
        assert [g.type for g in profiles["Excel"].gaps] == ["underutilized", "data-handoff"]

    def test_data_flows_follow_declared_integrations(self, make_interview):
        profiles = by_name(build_tool_profiles([make_interview(
            "i1",
            tools=[
                {"name": "Salesforce", "purpose": "Lead records", "integrations": ["HubSpot", "DocuSign"]},
                {"name": "HubSpot", "purpose": "Campaigns", "integrations": ["salesforce"]},
                {"name": "Slack"},
            ],
        )]))
        assert profiles["Salesforce"].data_flows == [
            DataFlow(direction="out", system="HubSpot", data_type="Lead records"),
            DataFlow(direction="out", system="DocuSign", data_type="Lead records"),
            DataFlow(direction="in", system="HubSpot", data_type="Campaigns"),
        ]
        assert profiles["HubSpot"].data_flows == [
            DataFlow(direction="in", system="Salesforce", data_type="Lead records"),
            DataFlow(direction="out", system="salesforce", data_type="Campaigns"),
        ]
        assert profiles["Slack"].data_flows == []

    def test_gaps_are_capped(self, make_interview):
        names = ["Jira", "Asana", "Salesforce", "NetSuite", "Zendesk", "Looker"]
        profiles = by_name(build_tool_profiles([make_interview(
            "i1",
            tools=[{"name": name, "usedBy": ["Dev"]} for name in names],
            workflows=[{"name": "Release", "participants": ["Dev"]}],
        )]))
        assert len(profiles["Jira"].gaps) == MAX_TOOL_GAPS
        assert profiles["Jira"].gaps[0].type == "underutilized"

    def test_tool_frequency_mode_skips_unknown(self, make_interview):
        [profile] = build_tool_profiles([
            make_interview("i1", tools=[{"name": "Slack", "frequency": "daily"}]),
            make_interview("i2", tools=[{"name": "Slack", "frequency": "unknown"}]),
            make_interview("i3", tools=[{"name": "Slack", "frequency": "weekly"}]),
            make_interview("i4", tools=[{"name": "slack", "frequency": "weekly"}]),
        ])
        assert profile.frequency == "weekly"
        assert profile.count == 4

    def test_non_completed_interviews_are_ignored(self, make_interview):
        [profile] = build_tool_profiles([
            make_interview("i1", tools=[{"name": "Slack", "usedBy": ["Ops"]}]),
            make_interview("i2", status="pending", tools=[{"name": "Slack", "usedBy": ["Sales"]}]),
            make_interview("i3", status="failed", tools=[{"name": "Jira"}]),
        ])
        assert profile.name == "Slack"
        assert profile.count == 1
        assert profile.interview_ids == ["i1"]
        assert [u.role for u in profile.used_by] == ["Ops"]


class TestTrainingGapProfiles:

    @pytest.fixture
    def profiles(self, make_interview):
        return build_training_gap_profiles([
            make_interview(
                "i1",
                training_gaps=[
                    {
                        "area": "Inventory reconciliation", "priority": "medium", "affectedRoles": ["Clerk"],
                        "currentState": "Counts done on paper", "desiredState": "Scanner-based counts",
                        "suggestedTraining": "Scanner workshop",
                    },
                    {"area": "Public speaking", "priority": "low"},
                ],
                tools=[{"name": "NetSuite", "usedBy": ["Clerk"]}],
                workflows=[{"name": "Cycle count", "participants": ["Clerk"]}],
            ),
            make_interview(
                "i2",
                training_gaps=[{
                    "area": "inventory reconciliation", "priority": "high", "affectedRoles": ["Manager", "clerk"],
                    "currentState": "Spreadsheet tallies",
                }],
                roles=[{"title": "Manager", "tools": ["Excel"], "workflows": ["Month-end close"]}],
            ),
        ])

    def test_aggregate(self, profiles):
        inventory, speaking = profiles
        assert inventory.area == "Inventory reconciliation"
        assert inventory.priority == "high"
        assert inventory.count == 2
        assert inventory.current_states == ["Counts done on paper", "Spreadsheet tallies"]
        assert inventory.desired_states == ["Scanner-based counts"]
        assert inventory.suggested_training == ["Scanner workshop"]
        assert speaking.affected_roles == []

    def test_affected_roles_carry_impact_and_count(self, profiles):
        inventory, _ = profiles
        assert inventory.affected_roles == [
            AffectedRole(role="Clerk", impact="high", count=2),
            AffectedRole(role="Manager", impact="high", count=1),
        ]

    def test_related_systems_and_workflows_come_from_affected_roles(self, profiles):
        inventory, speaking = profiles
        assert inventory.related_systems == ["NetSuite", "Excel"]
        assert inventory.related_workflows == ["Cycle count", "Month-end close"]
        assert speaking.related_systems == []
        assert speaking.related_workflows == []

    def test_risk(self, profiles):
        inventory, speaking = profiles
        assert inventory.risk == TrainingRisk(
            severity="high",
            description="Reported in 2 interviews across 2 roles.",
            business_impact="Slows Cycle count, Month-end close.",
        )
        assert speaking.risk == TrainingRisk(
            severity="low",
            description="Standard training priority",
            business_impact="Impact to be assessed",
        )

    def test_high_priority_across_many_roles_is_critical(self, make_interview):
        [profile] = build_training_gap_profiles([make_interview(
            "i1",
            training_gaps=[{"area": "Returns policy", "priority": "high", "affectedRoles": ["Clerk", "Buyer", "Support"]}],
        )])
        assert profile.risk.severity == "critical"
        assert profile.category == "process"

    @pytest.mark.parametrize("area, category", [
        ("NetSuite month-end reports", "system"),
        ("New CRM platform", "system"),
        ("Purchase approval process", "process"),
        ("Negotiation skills", "skill"),
        ("Product knowledge", "knowledge"),
        ("Public speaking", "other"),
    ])
    def test_category(self, make_interview, area, category):
        [profile] = build_training_gap_profiles([make_interview(
            "i1",
            training_gaps=[{"area": area}],
            tools=[{"name": "NetSuite"}],
        )])
        assert profile.category == category

    def test_non_completed_interviews_are_ignored(self, make_interview):
        profiles = build_training_gap_profiles([
            make_interview("i1", training_gaps=[{"area": "Excel basics", "affectedRoles": ["Analyst"]}]),
            make_interview("i2", status="analyzing", training_gaps=[{"area": "Excel basics", "affectedRoles": ["Intern"]}]),
            make_interview("i3", status="failed", training_gaps=[{"area": "SQL"}]),
        ])
        [profile] = profiles
        assert profile.count == 1
        assert [r.role for r in profile.affected_roles] == ["Analyst"]


class TestKeyWhitespace:

    def test_names_differing_only_in_whitespace_stay_distinct(self, make_interview):
        interviews = [
            make_interview("i1", workflows=[{"name": "Invoice Processing"}], tools=[{"name": "Excel"}]),
            make_interview("i2", workflows=[{"name": "invoice processing"}], tools=[{"name": "Excel "}]),
            make_interview("i3", workflows=[{"name": "Invoice  Processing"}]),
        ]

        workflows = build_workflow_profiles(interviews)
        assert [(w.name, w.count) for w in workflows] == [("Invoice Processing", 2), ("Invoice  Processing", 1)]
        assert sorted(t.name for t in build_tool_profiles(interviews)) == ["Excel", "Excel "]

        metrics = calculate_dashboard_metrics(interviews)
        assert [(w.name, w.count) for w in metrics.workflows] == [(w.name, w.count) for w in workflows]
