"""
Tests for Pydantic models.
"""
import pytest
from datetime import date

from matchmaker.models.image import ImageAsset
from matchmaker.models.match import MatchCandidate, MatchEdge, MatchResult
from matchmaker.models.profile import (
    AboutInfo,
    BasicInfo,
    ProfileDraft,
    WizardStep,
    age_on,
    cm_to_feet_inches,
)
from matchmaker.models.submission import ProfileSubmission


class TestProfileModels:
    """Tests for profile groups and the draft."""

    def test_basic_info_from_wire_names(self, step_data):
        """Test that groups are populated from the API's field names."""
        info = BasicInfo.model_validate(step_data["basic_info"])

        assert info.full_name == "Aziz Rahimi"
        assert info.date_of_birth == date(1992, 4, 12)
        assert info.height == 178
        assert info.to_wire()["fullName"] == "Aziz Rahimi"
        assert info.to_wire()["dateOfBirth"] == "1992-04-12"

    def test_groups_are_immutable(self, step_data):
        info = BasicInfo.model_validate(step_data["basic_info"])

        with pytest.raises(ValueError):
            info.full_name = "Someone Else"

    def test_partner_cities_split(self):
        """Test that a comma separated city string becomes a list."""
        about = AboutInfo.model_validate({"aboutMe": "Hi", "partnerPreferenceCity": "London, ,Leeds"})

        assert about.partner_preference_city == ("London", "Leeds")
        assert about.preferred_gender == "any"

    def test_step_fields(self):
        """Test that each step declares the fields it validates."""
        assert "fullName" in WizardStep.BASIC_INFO.fields
        assert "city" in WizardStep.LOCATION.fields
        assert "motherTongue" in WizardStep.CULTURAL.fields
        assert "annualIncome" in WizardStep.EDUCATION.fields
        assert "aboutMe" in WizardStep.ABOUT.fields
        assert WizardStep.PHOTOS.fields == ("profileImageIds",)
        assert [s.label for s in WizardStep][0] == "Basic Info"

    def test_draft_defaults_prefill(self):
        draft = ProfileDraft()

        assert draft.values_for(WizardStep.BASIC_INFO) == {"profileFor": "self"}
        assert draft.values_for(WizardStep.ABOUT) == {"preferredGender": "any"}
        assert not draft.is_complete

    def test_draft_with_group_returns_copy(self, step_data):
        draft = ProfileDraft()
        info = BasicInfo.model_validate(step_data["basic_info"])

        updated = draft.with_group(WizardStep.BASIC_INFO, info)

        assert draft.basic_info is None
        assert updated.basic_info == info
        assert WizardStep.BASIC_INFO not in updated.missing_steps()

    def test_age_on_birthday_boundary(self):
        dob = date(2000, 6, 15)

        assert age_on(dob, date(2024, 6, 14)) == 23
        assert age_on(dob, date(2024, 6, 15)) == 24

    def test_cm_to_feet_inches(self):
        assert cm_to_feet_inches(178) == "5'10\""
        assert cm_to_feet_inches(152.4) == "5'0\""


class TestSubmissionModels:
    """Tests for the assembled submission."""

    def test_assemble_requires_complete_draft(self):
        with pytest.raises(ValueError, match="incomplete"):
            ProfileSubmission.assemble(ProfileDraft(), [])

    def test_payload_flattens_groups(self, step_data):
        draft = ProfileDraft()
        for step in list(WizardStep)[:-1]:
            group = step.group_model.model_validate(step_data[step.value])
            draft = draft.with_group(step, group)

        submission = ProfileSubmission.assemble(draft, ["img-2", "img-1"])
        payload = submission.to_payload()

        assert payload["fullName"] == "Aziz Rahimi"
        assert payload["city"] == "London"
        assert payload["partnerPreferenceCity"] == ["London", "Birmingham"]
        assert payload["profileImageIds"] == ["img-2", "img-1"]

        with pytest.raises(ValueError):
            submission.profile_image_ids = ()


class TestMatchModels:
    """Tests for match candidates and edges."""

    def test_edge_is_unordered(self):
        assert MatchEdge(source_id="a", target_id="b") == MatchEdge(source_id="b", target_id="a")
        assert len({MatchEdge(source_id="a", target_id="b"), MatchEdge(source_id="b", target_id="a")}) == 1

    def test_self_edge_rejected(self):
        with pytest.raises(ValueError, match="itself"):
            MatchEdge(source_id="a", target_id="a")

    def test_candidate_from_api(self):
        candidate = MatchCandidate.from_api({"_id": "p2", "fullName": "Aziz Rahimi", "city": "London"})

        assert candidate.profile_id == "p2"
        assert candidate.label == "Aziz Rahimi – London"
        assert candidate.name_contains("  aziz ")
        assert not candidate.name_contains("farid")

    def test_candidate_without_id_rejected(self):
        with pytest.raises(ValueError):
            MatchCandidate.from_api({"fullName": "Nobody"})

    def test_match_result_defaults(self):
        result = MatchResult(success=True)

        assert result.error is None
        assert result.already_matched is False


class TestImageModels:
    """Tests for image assets."""

    def test_placeholder_is_pending(self):
        placeholder = ImageAsset(file_name="a.jpg")

        assert placeholder.status == "pending"
        assert not placeholder.is_persisted
        assert placeholder.local_key

    def test_from_api_fallbacks(self):
        asset = ImageAsset.from_api({"storageId": "st-1", "url": "https://cdn/x.jpg", "order": 2})

        assert asset.id == "st-1"
        assert asset.position == 2
        assert asset.status == "persisted"
