# cm_core/tests/helpers.py

# Spreadsheet export with two first-group columns, one excluded column and two
# second-group columns. Row 3 is the reserved row.
SAMPLE_CSV = "\n".join(
    [
        ";;Primeiro Grupo;;;Segundo Grupo;",
        ";;1;2;x;3;",
        "Caso;Codigo;Limpeza;Diurno;Coluna Extra;Hidratante;Noturno",
        ";;;;;;",
        ";;Marcar;;;Marcar;",
        ";PSM1R1A1;SABAO-X;FPS-50;ignored;CREME-Y;*****",
        "",
        ";PNM1R1A1;SABAO-X;Fim;ignored;;SERUM-Z",
        ";Legenda;Linhas 3;;;;",
        ";XX000;SABAO-X;;;;",
        ";pom2r2a2;Linha 1;GEL-W;;CREME-Y;",
    ]
)


def build_csv(rows):
    """
    rows: list of cell lists -> ";"-joined CSV text
    """
    return "\n".join(";".join(cells) for cells in rows)
