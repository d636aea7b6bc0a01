"""
Tests unitaires du registre des checkpoints (cache en mémoire).
"""

from unittest.mock import MagicMock

from fleettrack.schemas.checkpoint import CheckpointRef
from fleettrack.services.checkpoint_registry import CheckpointRegistry


def make_ref(name, order, aliases=()):
    return CheckpointRef(name=name, display_name=name.title(), sequence_order=order, alternative_names=aliases)


def test_load_active_trie_par_ordre():
    loader = MagicMock(return_value=[make_ref("KOLWEZI", 65), make_ref("TANGA", 5)])
    registry = CheckpointRegistry(loader=loader)

    names = [cp.name for cp in registry.load_active()]

    assert names == ["TANGA", "KOLWEZI"]


def test_cache_conserve_entre_appels():
    loader = MagicMock(return_value=[make_ref("TANGA", 5)])
    registry = CheckpointRegistry(loader=loader)

    registry.load_active()
    registry.load_active()
    registry.resolve("tanga")

    loader.assert_called_once()


def test_invalidate_force_un_rechargement():
    loader = MagicMock(side_effect=[
        [make_ref("TANGA", 5)],
        [make_ref("TANGA", 5), make_ref("SEGERA", 9)],
    ])
    registry = CheckpointRegistry(loader=loader)

    assert registry.resolve("SEGERA") is None
    registry.invalidate()
    assert registry.resolve("SEGERA").checkpoint.name == "SEGERA"
    assert loader.call_count == 2


def test_reload_recharge_immediatement():
    loader = MagicMock(return_value=[make_ref("TANGA", 5)])
    registry = CheckpointRegistry(loader=loader)

    registry.load_active()
    registry.reload()

    assert loader.call_count == 2


def test_liste_retournee_est_une_copie():
    registry = CheckpointRegistry(loader=lambda: [make_ref("TANGA", 5)])

    registry.load_active().clear()

    assert len(registry.load_active()) == 1


def test_resolve_texte_vide():
    registry = CheckpointRegistry(loader=lambda: [make_ref("TANGA", 5)])
    assert registry.resolve(None) is None
    assert registry.resolve("   ") is None


def test_longueur_minimale_configurable():
    loader = lambda: [make_ref("MBALA", 1)]
    assert CheckpointRegistry(loader=loader).resolve("MB") is None
    assert CheckpointRegistry(loader=loader, min_partial_length=2).resolve("MB").checkpoint.name == "MBALA"
