"""Controller-owned user notices, keyed by language tag."""

from __future__ import annotations

FALLBACK_LANGUAGE = "en"

NOTICES: dict[str, dict[str, str]] = {
    "blocked": {
        "en": "No further distinct approach is available; the same command kept being proposed.",
        "fr": "Aucune autre approche distincte n'est disponible ; la même commande a été proposée à répétition.",
        "es": "No hay otro enfoque distinto disponible; se propuso repetidamente el mismo comando.",
        "de": "Es gibt keinen weiteren anderen Ansatz; derselbe Befehl wurde wiederholt vorgeschlagen.",
        "it": "Non è disponibile un approccio diverso; lo stesso comando è stato proposto ripetutamente.",
        "pt": "Não há outra abordagem distinta disponível; o mesmo comando foi proposto repetidamente.",
        "nl": "Er is geen andere aanpak beschikbaar; hetzelfde commando werd steeds opnieuw voorgesteld.",
        "ja": "別の方法がありません。同じコマンドが繰り返し提案されました。",
        "zh": "没有其他可行的方法；同一命令被反复提出。",
        "ko": "다른 방법이 없습니다. 같은 명령이 반복해서 제안되었습니다.",
        "ru": "Другого подхода нет: одна и та же команда предлагалась повторно.",
    },
    "step_limit": {
        "en": "The request was not resolved within {max_steps} steps.",
        "fr": "La demande n'a pas été résolue en {max_steps} étapes.",
        "es": "La solicitud no se resolvió en {max_steps} pasos.",
        "de": "Die Anfrage wurde nicht innerhalb von {max_steps} Schritten gelöst.",
        "it": "La richiesta non è stata risolta in {max_steps} passaggi.",
        "pt": "A solicitação não foi resolvida em {max_steps} etapas.",
        "nl": "Het verzoek is niet binnen {max_steps} stappen opgelost.",
        "ja": "{max_steps} ステップ以内に解決しませんでした。",
        "zh": "请求未能在 {max_steps} 步内完成。",
        "ko": "{max_steps}단계 안에 요청을 해결하지 못했습니다.",
        "ru": "Запрос не был решён за {max_steps} шагов.",
    },
    "aborted": {
        "en": "The session was stopped.",
        "fr": "La session a été arrêtée.",
        "es": "La sesión se detuvo.",
        "de": "Die Sitzung wurde beendet.",
        "it": "La sessione è stata interrotta.",
        "pt": "A sessão foi interrompida.",
        "nl": "De sessie is gestopt.",
        "ja": "セッションを停止しました。",
        "zh": "会话已停止。",
        "ko": "세션이 중지되었습니다.",
        "ru": "Сеанс остановлен.",
    },
    "awaiting_output": {
        "en": "`{command}` is still running; its output is not available yet.",
        "fr": "`{command}` est toujours en cours ; sa sortie n'est pas encore disponible.",
        "es": "`{command}` sigue en ejecución; su salida aún no está disponible.",
        "de": "`{command}` läuft noch; die Ausgabe ist noch nicht verfügbar.",
        "it": "`{command}` è ancora in esecuzione; l'output non è ancora disponibile.",
        "pt": "`{command}` ainda está em execução; a saída ainda não está disponível.",
        "nl": "`{command}` draait nog; de uitvoer is nog niet beschikbaar.",
        "ja": "`{command}` は実行中です。出力はまだありません。",
        "zh": "`{command}` 仍在运行，输出尚不可用。",
        "ko": "`{command}` 이(가) 아직 실행 중이며 출력이 없습니다.",
        "ru": "`{command}` ещё выполняется; вывод пока недоступен.",
    },
    "failed": {
        "en": "`{command}` failed: {detail}",
        "fr": "`{command}` a échoué : {detail}",
        "es": "`{command}` falló: {detail}",
        "de": "`{command}` ist fehlgeschlagen: {detail}",
        "it": "`{command}` non è riuscito: {detail}",
        "pt": "`{command}` falhou: {detail}",
        "nl": "`{command}` is mislukt: {detail}",
        "ja": "`{command}` が失敗しました: {detail}",
        "zh": "`{command}` 执行失败：{detail}",
        "ko": "`{command}` 실행 실패: {detail}",
        "ru": "`{command}` завершилась с ошибкой: {detail}",
    },
    "engine_error": {
        "en": "No answer could be produced: {detail}",
        "fr": "Aucune réponse n'a pu être produite : {detail}",
        "es": "No se pudo generar una respuesta: {detail}",
        "de": "Es konnte keine Antwort erzeugt werden: {detail}",
        "it": "Non è stato possibile produrre una risposta: {detail}",
        "pt": "Não foi possível produzir uma resposta: {detail}",
        "nl": "Er kon geen antwoord worden gemaakt: {detail}",
        "ja": "応答を生成できませんでした: {detail}",
        "zh": "无法生成回答：{detail}",
        "ko": "응답을 생성할 수 없습니다: {detail}",
        "ru": "Не удалось получить ответ: {detail}",
    },
}


def render_notice(key: str, language: str, **values: object) -> str:
    """Render a controller notice in ``language``, or English when missing."""

    table = NOTICES[key]
    template = table.get(language) or table[FALLBACK_LANGUAGE]
    return template.format(**values)
