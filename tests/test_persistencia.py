import threading
import time

import pytest

from catalogo.persistencia import PersistenciaDiferida


class Escritor:
    def __init__(self, falla: bool = False):
        self.llamadas = 0
        self.falla = falla
        self.evento = threading.Event()

    def __call__(self):
        self.llamadas += 1
        self.evento.set()
        if self.falla:
            raise OSError("disco lleno")


def test_rafaga_produce_una_sola_escritura():
    escritor = Escritor()
    p = PersistenciaDiferida(escritor, retardo=0.05)
    for _ in range(20):
        p.programar()
    assert escritor.evento.wait(2.0)
    # Give a (wrong) second timer a chance to fire.
    escritor.evento.clear()
    assert not escritor.evento.wait(0.2)
    assert escritor.llamadas == 1
    assert not p.pendiente


def test_flush_inmediato_cancela_el_timer():
    escritor = Escritor()
    p = PersistenciaDiferida(escritor, retardo=60)
    p.programar()
    assert p.pendiente
    assert p.flush() is True
    assert p.flush() is False
    assert escritor.llamadas == 1


def test_contexto_guarda_al_salir():
    escritor = Escritor()
    with PersistenciaDiferida(escritor, retardo=60) as p:
        p.programar()
        p.programar()
        assert escritor.llamadas == 0
    assert escritor.llamadas == 1


def test_deshabilitada_ignora_programar():
    escritor = Escritor()
    p = PersistenciaDiferida(escritor, retardo=60, habilitada=False)
    p.programar()
    assert not p.pendiente
    p.habilitar()
    p.programar()
    p.deshabilitar()
    assert p.flush() is False
    assert escritor.llamadas == 0


def test_error_al_guardar_deja_pendiente():
    escritor = Escritor(falla=True)
    p = PersistenciaDiferida(escritor, retardo=60)
    p.programar()
    with pytest.raises(OSError):
        p.flush()
    assert p.pendiente


def test_salida_espera_la_escritura_en_curso():
    empezo = threading.Event()
    hecho = threading.Event()

    def lento():
        empezo.set()
        time.sleep(0.3)
        hecho.set()

    with PersistenciaDiferida(lento, retardo=0) as p:
        p.programar()
        assert empezo.wait(2.0)
    assert hecho.is_set()
