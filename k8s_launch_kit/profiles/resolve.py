"""Profile resolution: pick the first catalog entry whose predicates all hold.

Resolution is an ordered first-match, not a best match. Catalog authors order
specificity through entry names. A predicate a definition leaves out matches
anything; a declared predicate must equal the descriptor value exactly.
"""

import logging

from k8s_launch_kit.exceptions import NoApplicableProfileError
from k8s_launch_kit.models.descriptors import CapabilitiesDescriptor, RequirementsDescriptor
from k8s_launch_kit.models.profile import ProfileDefinition, ResolvedProfile
from k8s_launch_kit.profiles.catalog import ProfileCatalog

logger = logging.getLogger(__name__)


def first_mismatch(
    profile: ProfileDefinition,
    requirements: RequirementsDescriptor,
    capabilities: CapabilitiesDescriptor,
) -> str | None:
    """
    Name the first declared predicate that does not hold, or None if all hold.

    Requirement predicates are checked before capability predicates, each in
    declaration order.
    """
    for key, expected in profile.requirements.items():
        # an empty string declares nothing, same as leaving the key out
        if expected is None or expected == "":
            continue
        if requirements.value_of(key) != expected:
            return f"profileRequirements.{key}"

    for key, expected in profile.capabilities.items():
        if expected is None:
            continue
        if capabilities.capability(key) != expected:
            return f"nodeCapabilities.{key}"

    return None


def profile_matches(
    profile: ProfileDefinition,
    requirements: RequirementsDescriptor,
    capabilities: CapabilitiesDescriptor,
) -> bool:
    return first_mismatch(profile, requirements, capabilities) is None


def resolve_profile(
    requirements: RequirementsDescriptor,
    capabilities: CapabilitiesDescriptor,
    plugin_name: str,
    catalog: ProfileCatalog,
) -> ResolvedProfile:
    """
    Select the profile a plugin should deploy.

    Args:
        requirements: Desired state
        capabilities: Discovered node capabilities
        plugin_name: Only entries owned by this plugin are considered
        catalog: Profile catalog

    Returns:
        The first matching entry, bound with absolute template paths

    Raises:
        NoApplicableProfileError: If no entry matches
    """
    logger.info(
        "Finding applicable profile for plugin %s (requirements=%s)",
        plugin_name,
        requirements.to_dict(),
    )
    candidates = catalog.for_plugin(plugin_name)
    logger.debug("Found %d candidate profile(s)", len(candidates))

    for profile in candidates:
        mismatch = first_mismatch(profile, requirements, capabilities)
        if mismatch is None:
            logger.info("Found applicable profile %s", profile.name)
            return profile.bind()
        logger.debug("Profile %s rejected: %s does not match", profile.name, mismatch)

    raise NoApplicableProfileError(plugin_name, requirements.to_dict(), capabilities.to_dict())
