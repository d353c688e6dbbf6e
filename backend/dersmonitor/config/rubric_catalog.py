"""
観察フォームの評価基準カタログを定義するモジュール
"""
import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional, Sequence, Union

from ..errors import InvalidCatalogError
from ..models.rubric import Criterion, RubricCatalog, Section

logger = logging.getLogger(__name__)


def _criterion(criterion_id: str, label: str, descriptions: Sequence[str]) -> Criterion:
    """レベル5から1の順に並んだ記述から評価基準を生成する"""
    return Criterion(
        id=criterion_id,
        label=f"{criterion_id} {label}",
        levels={5 - i: text for i, text in enumerate(descriptions)},
    )


# カテゴリごとの重み（合計100）
SECTION_WEIGHTS = {
    "planning_instruction": 40,
    "environment": 20,
    "outcomes": 20,
    "assessment": 20,
}

OBSERVATION_FORM_STRUCTURE = RubricCatalog(sections=(
    Section(
        id="planning_instruction",
        title="Dərsin planlaşdırılması və tədris prosesi",
        weight=SECTION_WEIGHTS["planning_instruction"],
        criteria=(
            _criterion("1.1", "Təlim nəticələrinin düzgün müəyyən edilməsi", (
                "Təlim nəticələri tam və aydın şəkildə müəyyən edilib, dərsin hər bir mərhələsində tətbiq olunur.",
                "Təlim nəticələri aydın şəkildə müəyyən edilib və dərsin mərhələlərinə inteqrasiya olunub.",
                "Təlim nəticələri müəyyən edilib, lakin onların dərs zamanı tətbiqi qeyri-sabitdir.",
                "Təlim nəticələri qismən müəyyən edilib, lakin onlar dərs prosesi ilə tam uyğunlaşdırılmayıb.",
                "Təlim nəticələri ümumiyyətlə müəyyən edilməyib və dərs prosesi ilə əlaqələndirilmir.",
            )),
            _criterion("1.2", "Təlim nəticələrinin şagirdlərlə aydın şəkildə paylaşılması", (
                "Təlim nəticələri həmişə şagirdlərlə aydın və sistemli şəkildə paylaşılır. Şagirdlər nəticələri tam anlayır.",
                "Təlim nəticələri şagirdlərlə demək olar ki, hər zaman aydın şəkildə paylaşılır.",
                "Təlim nəticələri şagirdlərə təqdim olunur, lakin onların izahı hər zaman aydın deyil.",
                "Təlim nəticələri qismən şagirdlərlə paylaşılır, lakin aydın deyil.",
                "Təlim nəticələri şagirdlərlə ümumiyyətlə paylaşılmır.",
            )),
            _criterion("1.3", "Dərs planlaşdırılarkən şagirdlərin əvvəlki təlim nəticələrinin nəzərə alınması", (
                "Dərs planlaşdırılarkən şagirdlərin əvvəlki təlim nəticələri tam nəzərə alınır.",
                "Dərs planlaşdırılarkən əksər şagirdlərin əvvəlki təlim nəticələri nəzərə alınır.",
                "Dərs planlaşdırılarkən şagirdlərin əvvəlki təlim nəticələri nəzərə alınır, lakin bu yanaşma davamlı deyil.",
                "Dərs planlaşdırılarkən yalnız bəzi şagirdlərin əvvəlki təlim nəticələri nəzərə alınır.",
                "Dərs planlaşdırılarkən şagirdlərin əvvəlki təlim nəticələri nəzərə alınmır.",
            )),
            _criterion("1.4", "Fərdi öyrənmə ehtiyaclarının nəzərə alınması", (
                "Hər bir şagirdin fərdi öyrənmə ehtiyacları tam dəqiqliklə müəyyən edilir və nəzərə alınır.",
                "Şagirdlərin fərdi öyrənmə ehtiyacları adətən müəyyən olunur və dərsin əsas hissələrində nəzərə alınır.",
                "Fərdi öyrənmə ehtiyacları bəzi hallarda müəyyən edilir, lakin dərsin ümumi planında hər zaman nəzərə alınmır.",
                "Şagirdlərin fərdi öyrənmə ehtiyacları çox az hallarda müəyyən edilir.",
                "Fərdi öyrənmə ehtiyacları ümumiyyətlə müəyyən edilmir.",
            )),
            _criterion("1.5", "Vaxtdan səmərəli istifadə", (
                "Dərsin bütün mərhələləri dəqiq vaxt çərçivəsində planlaşdırılmışdır və zaman maksimum effektivliklə istifadə olunur.",
                "Vaxtın istifadəsi əsasən səmərəli planlaşdırılıb, nəticələrə çatılır.",
                "Vaxtın istifadəsi bəzən nəzərə alınır, digər hissələrdə vaxt itkisi olur.",
                "Dərsin vaxtı nadir hallarda səmərəli planlaşdırılır.",
                "Dərsin vaxtı ümumiyyətlə səmərəli planlaşdırılmır.",
            )),
            _criterion("1.6", "Resurslardan səmərəli istifadə", (
                "Resurslar dərsin bütün mərhələlərində dəqiq və məqsədəuyğun şəkildə planlaşdırılır.",
                "Resurslar adətən dərsin əksər hissələri üçün məqsədəuyğun planlaşdırılır.",
                "Resursların istifadəsi bəzən planlaşdırılır.",
                "Resurslar nadir hallarda məqsədəuyğun planlaşdırılır.",
                "Resurslardan ümumiyyətlə məqsədəuyğun istifadə planlaşdırılmır.",
            )),
            _criterion("1.7", "Təlim nəticələrinə xidmət edən üsul və formaların tətbiqi", (
                "Təlim üsul və formaları mükəmməl tətbiq edilir və təlim nəticələrinə tam xidmət edir.",
                "Təlim üsul və formaları təlim nəticələrinə uyğun tətbiq edilir.",
                "Təlim üsulları tətbiq olunur, lakin bəzən təlim nəticələrinə tam xidmət etmir.",
                "Təlim üsulları qismən tətbiq edilir, lakin təlim nəticələrinə uyğun deyil.",
                "Təlim üsul və formaları düzgün seçilmir.",
            )),
            _criterion("1.8", "Dərsin mərhələləri və məzmun əlaqəliliyi", (
                "Dərsin mərhələləri və məzmun arasında tam məntiqli ardıcıllıq mövcuddur.",
                "Dərsin mərhələləri arasında məzmun əlaqəliliyi təmin edilir.",
                "Dərsin mərhələləri arasında müəyyən əlaqə var, lakin ardıcıllıq tam təmin olunmur.",
                "Dərsin mərhələləri arasında əlaqə zəifdir.",
                "Dərsin mərhələləri arasındakı əlaqə tamamilə pozulmuşdur.",
            )),
            _criterion("1.9", "Məzmunun aydın şəkildə izah edilməsi", (
                "Məzmun tam aydın və sistemli şəkildə izah edilir, şagirdlər tam başa düşür.",
                "Məzmun aydın və başa düşülən şəkildə izah edilir.",
                "Məzmun izah olunur, lakin bəzi hissələr aydın deyil.",
                "Məzmun izah olunur, lakin çox qarışıq və qeyri-aydındır.",
                "Məzmun izah edilmir və ya şagirdlərin başa düşməsi üçün aydın deyil.",
            )),
            _criterion("1.10", "Şagirdlərin müstəqil işləməsinə şərait yaradılması", (
                "Şagirdlərin müstəqil işləməsi üçün hər zaman şərait yaradılır və dəstəklənir.",
                "Şagirdlərə müstəqil işləmək üçün şərait adətən təmin edilir.",
                "Şagirdlərin müstəqil işləməsinə qismən şərait yaradılır.",
                "Şagirdlərin müstəqil işləməsi üçün şərait az hallarda təmin edilir.",
                "Şagirdlərə müstəqil işləmək üçün heç bir şərait yaradılmır.",
            )),
            _criterion("1.11", "Şagirdlərin dərsə fəal cəlb olunmasının təmin edilməsi", (
                "Şagirdlərin dərsə tam fəal cəlb olunması təmin edilir və onlar motivasiya olunmuşdur.",
                "Şagirdlərin dərsə fəal cəlb olunması adətən təmin edilir.",
                "Şagirdlər dərsə qismən cəlb olunur, lakin tam fəallıq təmin edilmir.",
                "Şagirdlərin dərsə cəlb olunması az hallarda müşahidə edilir.",
                "Şagirdlərin dərsə cəlb olunması təmin edilmir, onlar tam passivdir.",
            )),
        ),
    ),
    Section(
        id="environment",
        title="Təlim mühiti",
        weight=SECTION_WEIGHTS["environment"],
        criteria=(
            _criterion("2.1", "Şagirdlərin nümunəvi davranış nümayiş etdirmələri", (
                "Bütün şagirdlər nümunəvi davranış nümayiş etdirir və dərsdə tam intizam təmin edilir.",
                "Şagirdlərin əksəriyyəti nümunəvi davranış nümayiş etdirir, intizam qorunur.",
                "Şagirdlər bəzən nümunəvi davranış nümayiş etdirir, lakin tam intizam müşahidə olunmur.",
                "Şagirdlər nadir hallarda nümunəvi davranış göstərir.",
                "Şagirdlər nümunəvi davranış nümayiş etdirmir, dərsdə intizam pozuntuları çoxdur.",
            )),
            _criterion("2.2", "Davranış qaydalarının pozulma halları", (
                "Davranış qaydaları həmişə ciddi şəkildə qorunur və dərs mühiti sakit və nizamlıdır.",
                "Davranış qaydaları əsasən pozulmur, yalnız nadir hallarda kiçik pozuntular olur.",
                "Qaydaların pozulması bəzən müşahidə olunur, lakin müəllim müdaxilə edir.",
                "Davranış qaydalarının pozulması az hallarda müşahidə olunur, lakin dərsə təsir edir.",
                "Davranış qaydaları daim pozulur, müəllimin müdaxiləsi tələb olunur.",
            )),
            _criterion("2.3", "Şagirdlərin təlimatlara əməl etməsi", (
                "Şagirdlər həmişə təlimatlara əməl edir və dərsin gedişatı problemsiz davam edir.",
                "Şagirdlər adətən təlimatlara əməl edir və tapşırıqları yerinə yetirir.",
                "Şagirdlər təlimatlara bəzən əməl edir, bəzi hallarda təlimatlar anlaşılmır.",
                "Şagirdlər təlimatlara nadir hallarda əməl edir.",
                "Şagirdlər təlimatlara ümumiyyətlə əməl etmir, dərsin gedişatı pozulur.",
            )),
            _criterion("2.4", "Şagirdlər arasında nəzakət və qayğıkeş münasibət", (
                "Şagirdlər həmişə bir-birlərinə nəzakət və qayğıkeş münasibət göstərir.",
                "Şagirdlər adətən bir-birinə nəzakətli və qayğıkeş davranır.",
                "Şagirdlər arasında bəzən nəzakət və qayğıkeş münasibət müşahidə olunur.",
                "Şagirdlər arasında nəzakət nadir hallarda müşahidə olunur, qarşılıqlı hörmətsizlik var.",
                "Şagirdlər arasında nəzakət və qayğıkeş münasibət yoxdur.",
            )),
            _criterion("2.5", "Müəllimin təmin etdiyi ünsiyyət və əməkdaşlıq mühiti", (
                "Müəllim həmişə şagirdlərlə mükəmməl ünsiyyət və əməkdaşlıq mühiti yaradır.",
                "Müəllim adətən səmimi və dəstəkləyici ünsiyyət mühiti yaradır.",
                "Müəllim bəzən ünsiyyət və əməkdaşlıq mühiti yaradır.",
                "Müəllim nadir hallarda ünsiyyət və əməkdaşlıq mühiti yaradır.",
                "Müəllim şagirdlərlə əməkdaşlıq mühiti yaratmır.",
            )),
        ),
    ),
    Section(
        id="outcomes",
        title="Şagirdlərin bacarıq və nəticələri",
        weight=SECTION_WEIGHTS["outcomes"],
        criteria=(
            _criterion("3.1", "Şagirdlərin nəzərdə tutulan məzmun standartlarına uyğun irəliləyiş nümayiş etdirməsi", (
                "Şagirdlər həmişə nəzərdə tutulan məzmun standartlarına uyğun irəliləyiş nümayiş etdirir.",
                "Şagirdlər adətən məzmun standartlarına uyğun irəliləyiş nümayiş etdirir.",
                "Şagirdlər bəzi hallarda məzmun standartlarına uyğun irəliləyiş nümayiş etdirir.",
                "Şagirdlər nadir hallarda məzmun standartlarına uyğun irəliləyiş nümayiş etdirir.",
                "Şagirdlər məzmun standartlarına uyğun irəliləyiş nümayiş etdirmir.",
            )),
            _criterion("3.2", "Şagirdlərin öyrəndiklərini müstəqil şəkildə əlaqələndirmə bacarıqları", (
                "Şagirdlər həmişə öyrəndiklərini müstəqil şəkildə əlaqələndirir və fikirlərini əsaslandırır.",
                "Şagirdlər adətən öyrəndiklərini əlaqələndirir və fikirlərini əsaslandırır.",
                "Şagirdlər bəzi hallarda öyrəndiklərini əlaqələndirir.",
                "Şagirdlər nadir hallarda öyrəndiklərini əlaqələndirir.",
                "Şagirdlər öyrəndiklərini ümumiyyətlə əlaqələndirmir.",
            )),
            _criterion("3.3", "Tənqidi və yaradıcı düşünmə bacarıqları", (
                "Şagirdlər həmişə tənqidi və yaradıcı düşünmə bacarıqları nümayiş etdirir.",
                "Şagirdlər adətən tənqidi və yaradıcı düşünmə bacarıqları nümayiş etdirir.",
                "Şagirdlər bəzən tənqidi və yaradıcı düşünmə bacarıqları nümayiş etdirir.",
                "Şagirdlər nadir hallarda tənqidi və yaradıcı düşünmə bacarıqları nümayiş etdirir.",
                "Şagirdlər tənqidi və yaradıcı düşünmə bacarıqları nümayiş etdirmir.",
            )),
        ),
    ),
    Section(
        id="assessment",
        title="Qiymətləndirmə və rəy",
        weight=SECTION_WEIGHTS["assessment"],
        criteria=(
            _criterion("4.1", "Dərs zamanı qiymətləndirmə üsullarının təlim nəticələrinə uyğunluğu", (
                "Qiymətləndirmə üsulları həmişə təlim nəticələrinə tam uyğun gəlir və dərsin məqsədini dəstəkləyir.",
                "Qiymətləndirmə üsulları təlim nəticələrinə əsasən uyğun seçilir.",
                "Qiymətləndirmə üsulları bəzən təlim nəticələrinə uyğun olur.",
                "Qiymətləndirmə üsulları nadir hallarda təlim nəticələrinə uyğun gəlir.",
                "Qiymətləndirmə üsulları təlim nəticələrinə ümumiyyətlə uyğun deyil.",
            )),
            _criterion("4.2", "Şagirdlərə faydalı və fərdi rəy verilməsi", (
                "Şagirdlərə həmişə faydalı, fərdi və məqsədyönlü rəy verilir.",
                "Şagirdlərə adətən faydalı və fərdi rəy verilir.",
                "Şagirdlərə bəzən rəy verilir, lakin bu rəy konkret və fərdi olmur.",
                "Rəy nadir hallarda verilir.",
                "Şagirdlərə ümumiyyətlə rəy verilmir.",
            )),
            _criterion("4.3", "Şagirdlərin özünüqiymətləndirməsi və qarşılıqlı qiymətləndirmə", (
                "Şagirdlər həmişə özlərini və bir-birlərini qiymətləndirmək üçün şəraitə malikdir.",
                "Şagirdlər adətən özlərini və bir-birlərini qiymətləndirir.",
                "Şagirdlər bəzən özlərini qiymətləndirir.",
                "Özünüqiymətləndirmə nadir hallarda tətbiq olunur.",
                "Şagirdlərin özünüqiymətləndirmə imkanları ümumiyyətlə yaradılmır.",
            )),
        ),
    ),
))


@lru_cache()
def get_catalog() -> RubricCatalog:
    """
    組み込みの観察フォームを検証済みのカタログとして取得する

    Returns:
        RubricCatalog: 評価基準カタログ
    """
    return OBSERVATION_FORM_STRUCTURE.validate()


def load_catalog(path: Optional[Union[str, Path]] = None) -> RubricCatalog:
    """
    JSONファイルから評価基準カタログを読み込む

    Args:
        path: カタログファイルのパス（Noneの場合は組み込みカタログ）

    Returns:
        RubricCatalog: 検証済みのカタログ

    Raises:
        InvalidCatalogError: ファイルが読めない、または不変条件に違反している場合
    """
    if path is None:
        return get_catalog()

    catalog_path = Path(path)
    logger.info(f"評価基準カタログを読み込みます: {catalog_path}")
    try:
        with catalog_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise InvalidCatalogError(
            "カタログファイルを読み込めません",
            details=f"{catalog_path}: {e}",
        ) from e

    catalog = RubricCatalog.from_dict(data).validate()
    logger.debug(f"カテゴリ数: {len(catalog)}, 評価基準数: {len(catalog.criterion_ids())}")
    return catalog
